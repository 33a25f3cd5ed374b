"""
Markdown report: generation metadata, imported resources, errors and the
generated HCL in a fenced block.
"""
from datetime import datetime, timezone

from jinja2 import Environment

from tfimport import __version__
from tfimport.crawl import CrawlResult

_TEMPLATE = """\
# Terraform Import

**Generated:** {{ generated }}
**Source:** `{{ source }}`
**Tool:** tfimport v{{ version }}

---

## Resources

{% if resources %}| # | Type | Import ID |
|---|------|-----------|
{% for r in resources %}| {{ loop.index }} | `{{ r.resource_type }}` | `{{ r.import_id }}` |
{% endfor %}{% else %}No resources were imported.
{% endif %}
{% if errors %}
## Errors

{% for e in errors %}- `{{ e.resource_id }}`{% if e.expanding %} (listing children){% endif %}: {{ e.message }}
{% endfor %}{% endif %}
## Configuration

```hcl
{{ hcl }}
```
"""


def build_report(result: CrawlResult, source: str) -> str:
    env = Environment(autoescape=False, keep_trailing_newline=True)
    template = env.from_string(_TEMPLATE)
    return template.render(
        generated=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        source=source,
        version=__version__,
        resources=result.resources,
        errors=result.errors,
        hcl=result.text.strip("\n"),
    )
