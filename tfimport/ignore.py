from dataclasses import dataclass
from typing import Optional

from tfimport.mappings import ImportConfig


@dataclass(frozen=True)
class IgnoreMatch:
    kind: str    # "suffix" or "template"
    rule: str


class IgnoreRuleEngine:
    """Decides which children a recursive crawl skips."""

    def __init__(self, config: ImportConfig) -> None:
        self.suffixes = config.ignore_suffixes
        self.templates = config.ignore_templates

    def explain(self, child_id: str, ancestor_type: Optional[str]) -> Optional[IgnoreMatch]:
        """Return the first rule excluding ``child_id``, suffix rules first."""
        for suffix in self.suffixes:
            if child_id.endswith(suffix):
                return IgnoreMatch("suffix", suffix)
        for endpoint in self.templates.get(ancestor_type or "", ()):
            if endpoint.match(child_id).is_match:
                return IgnoreMatch("template", endpoint.template)
        return None

    def should_ignore(self, child_id: str, ancestor_type: Optional[str]) -> bool:
        return self.explain(child_id, ancestor_type) is not None
