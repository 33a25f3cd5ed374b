"""
Path templates for resource identifiers.

A template such as
``/subscriptions/{subscriptionId}/resourceGroups/{resourceGroupName}``
matches identifiers segment by segment and can rebuild an identifier from the
captured placeholder values.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, Mapping, Tuple

from tfimport.errors import TemplateBuildError, TemplateError

_PLACEHOLDER_RE = re.compile(r"^\{([A-Za-z_][A-Za-z0-9_]*)\}$")


@dataclass(frozen=True)
class Segment:
    value: str
    is_placeholder: bool = False


@dataclass(frozen=True)
class MatchResult:
    is_match: bool
    values: Dict[str, str] = field(default_factory=dict)


def _split(path: str) -> list:
    path = path.split("?", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/")
    return path.split("/")


@dataclass(frozen=True)
class EndpointTemplate:
    template: str
    api_version: str = ""
    segments: Tuple[Segment, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.template.startswith("/"):
            raise TemplateError(f"Template must start with '/': {self.template!r}")
        segments = []
        seen = set()
        for part in _split(self.template):
            m = _PLACEHOLDER_RE.match(part)
            if m:
                name = m.group(1)
                if name in seen:
                    raise TemplateError(f"Duplicate placeholder {name!r} in {self.template!r}")
                seen.add(name)
                segments.append(Segment(name, True))
            elif "{" in part or "}" in part:
                raise TemplateError(f"Malformed placeholder {part!r} in {self.template!r}")
            else:
                segments.append(Segment(part))
        object.__setattr__(self, "segments", tuple(segments))

    @property
    def placeholders(self) -> Tuple[str, ...]:
        return tuple(s.value for s in self.segments if s.is_placeholder)

    def match(self, resource_id: str) -> MatchResult:
        parts = _split(resource_id)
        if len(parts) != len(self.segments):
            return MatchResult(False)
        values: Dict[str, str] = {}
        for segment, part in zip(self.segments, parts):
            if segment.is_placeholder:
                if not part:
                    return MatchResult(False)
                values[segment.value] = part
            elif segment.value.lower() != part.lower():
                return MatchResult(False)
        return MatchResult(True, values)

    def build(self, values: Mapping[str, str]) -> str:
        parts = []
        for segment in self.segments:
            if not segment.is_placeholder:
                parts.append(segment.value)
                continue
            value = values.get(segment.value)
            if not value:
                raise TemplateBuildError(
                    f"No value for {segment.value!r} building {self.template!r}"
                )
            parts.append(value)
        return "/".join(parts)


def template(path: str, api_version: str = "") -> EndpointTemplate:
    return EndpointTemplate(path, api_version)
