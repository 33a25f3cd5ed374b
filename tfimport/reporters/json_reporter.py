"""
JSON report generator.
"""
import json
from datetime import datetime, timezone

from tfimport import __version__
from tfimport.crawl import ConfigFragment, CrawlResult


def build_report(result: CrawlResult, source: str) -> str:
    report = {
        "meta": {
            "generated": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "source": source,
            "tool": "tfimport",
            "version": __version__,
        },
        "summary": {
            "resources": len(result.resources),
            "errors": len(result.errors),
        },
        "fragments": [
            {
                "kind": "resource",
                "resource_id": f.resource_id,
                "resource_type": f.resource_type,
                "import_id": f.import_id,
                "hcl": f.text,
            }
            if isinstance(f, ConfigFragment)
            else {
                "kind": "error",
                "resource_id": f.resource_id,
                "message": f.message,
                "expanding": f.expanding,
            }
            for f in result.fragments
        ],
        "hcl": result.text,
    }
    return json.dumps(report, indent=2)
