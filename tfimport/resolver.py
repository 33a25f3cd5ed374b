"""
Resource ID -> azurerm resource type resolution.

Resolution is a chain of strategies, the first non-empty answer wins:

1. ``VmProbeStrategy`` reads a virtual machine's OS type from the resource API
   to tell Windows and Linux VMs apart.
2. ``TemplateTableStrategy`` matches the ID against the mapping table.

An ID nobody recognizes resolves to ``None``; that is not an error.
"""
import json
from typing import Any, Mapping, Optional, Protocol, Sequence

from rich.console import Console

from tfimport.deadline import Deadline
from tfimport.endpoints import EndpointTemplate
from tfimport.errors import MalformedProbeResponseError
from tfimport.mappings import ImportConfig, VmProbeRule
from tfimport.models.node import RESOURCE_TYPE_KEY, ResourceNode

console = Console(stderr=True)


class ResourceClient(Protocol):
    def request(self, method: str, url: str, deadline: Deadline) -> str:
        ...


class ResolveStrategy(Protocol):
    def resolve(self, resource_id: str, deadline: Deadline) -> Optional[str]:
        ...


def get_json_property(data: Any, *path: str) -> Any:
    """Walk nested dicts; None when any step is missing or not an object."""
    cur = data
    for key in path:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
        if cur is None:
            return None
    return cur


class VmProbeStrategy:
    def __init__(self, rule: VmProbeRule, client: ResourceClient) -> None:
        self.rule = rule
        self.client = client

    def resolve(self, resource_id: str, deadline: Deadline) -> Optional[str]:
        if not self.rule.template.match(resource_id).is_match:
            return None

        url = f"{resource_id.split('?', 1)[0]}?api-version={self.rule.template.api_version}"
        body = self.client.request("GET", url, deadline)
        try:
            data = json.loads(body)
        except (TypeError, ValueError) as exc:
            raise MalformedProbeResponseError(f"Unparseable response for {resource_id!r}: {exc}") from exc
        if not isinstance(data, dict):
            raise MalformedProbeResponseError(
                f"Expected a JSON object for {resource_id!r}, got {type(data).__name__}"
            )

        os_type = get_json_property(data, *self.rule.os_type_path)
        if not isinstance(os_type, str) or os_type not in self.rule.os_types:
            # Ambiguous VM: fall back to the general table.
            console.print(f"[dim]No usable osType ({os_type!r}) for {resource_id}[/dim]")
            return None
        return self.rule.os_types[os_type]


class TemplateTableStrategy:
    def __init__(self, resource_types: Mapping[str, EndpointTemplate]) -> None:
        # Sorted so that overlapping templates still resolve deterministically
        self._table = sorted(resource_types.items())

    def resolve(self, resource_id: str, deadline: Optional[Deadline] = None) -> Optional[str]:
        for type_name, endpoint in self._table:
            if endpoint.match(resource_id).is_match:
                return type_name
        return None


class ResourceTypeResolver:
    def __init__(self, strategies: Sequence[ResolveStrategy]) -> None:
        self.strategies = list(strategies)

    @classmethod
    def from_config(cls, config: ImportConfig, client: ResourceClient) -> "ResourceTypeResolver":
        return cls([
            VmProbeStrategy(config.vm_probe, client),
            TemplateTableStrategy(config.resource_types),
        ])

    def resolve(self, resource_id: str, deadline: Deadline) -> Optional[str]:
        for strategy in self.strategies:
            type_name = strategy.resolve(resource_id, deadline)
            if type_name:
                return type_name
        return None

    def resolve_node(self, node: ResourceNode, deadline: Deadline) -> Optional[str]:
        """Resolve ``node`` once; later calls read the node's metadata cache."""
        if RESOURCE_TYPE_KEY in node.metadata:
            return node.metadata[RESOURCE_TYPE_KEY] or None
        type_name = self.resolve(node.id, deadline)
        node.metadata[RESOURCE_TYPE_KEY] = type_name or ""
        return type_name
