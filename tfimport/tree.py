"""
Default (generic) expansion of ARM resources into child nodes.

Only container relationships are listed: subscription -> resource groups,
resource group -> resources, and the child collections of a handful of
parent resource types.
"""
from typing import List, Optional, Protocol, Tuple

from tfimport.arm import ArmClient
from tfimport.deadline import Deadline
from tfimport.endpoints import EndpointTemplate, template
from tfimport.errors import ExpansionError, TfImportError
from tfimport.models.node import ResourceNode

_SUB = "/subscriptions/{subscriptionId}"
_RG = _SUB + "/resourceGroups/{resourceGroupName}"

# (parent template, child collection suffix) with the API version used to list
CHILD_COLLECTIONS: Tuple[Tuple[EndpointTemplate, str], ...] = (
    (template(_SUB, "2021-04-01"), "/resourceGroups"),
    (template(_RG, "2021-04-01"), "/resources"),
    (template(_RG + "/providers/Microsoft.Storage/storageAccounts/{accountName}", "2021-09-01"),
     "/blobServices/default/containers"),
    (template(_RG + "/providers/Microsoft.Sql/servers/{serverName}", "2021-11-01"), "/databases"),
    (template(_RG + "/providers/Microsoft.Network/virtualNetworks/{virtualNetworkName}", "2022-07-01"),
     "/subnets"),
    (template(_RG + "/providers/Microsoft.Network/networkSecurityGroups/{networkSecurityGroupName}",
              "2022-07-01"), "/securityRules"),
    (template(_RG + "/providers/Microsoft.Network/privateDnsZones/{privateZoneName}", "2020-06-01"),
     "/virtualNetworkLinks"),
    (template(_RG + "/providers/Microsoft.Compute/virtualMachines/{vmName}", "2022-08-01"), "/extensions"),
)


class TreeModel(Protocol):
    def expand_default(self, node: ResourceNode, deadline: Deadline) -> List[ResourceNode]:
        ...


class ArmTreeModel:
    def __init__(self, client: ArmClient, max_pages: int = 100) -> None:
        self.client = client
        self.max_pages = max_pages

    def _collection_url(self, resource_id: str) -> Optional[str]:
        for parent, suffix in CHILD_COLLECTIONS:
            if parent.match(resource_id).is_match:
                return f"{resource_id.rstrip('/')}{suffix}?api-version={parent.api_version}"
        return None

    def expand_default(self, node: ResourceNode, deadline: Deadline) -> List[ResourceNode]:
        url = self._collection_url(node.id)
        if url is None:
            return []

        children: List[ResourceNode] = []
        pages = 0
        try:
            while url and pages < self.max_pages:
                data = self.client.get_json(url, deadline)
                for item in data.get("value", []):
                    if isinstance(item, dict) and item.get("id"):
                        children.append(node.child(item["id"], item.get("name", "")))
                url = data.get("nextLink")
                pages += 1
        except TfImportError as exc:
            raise ExpansionError(f"Listing children of {node.id!r} failed: {exc}") from exc
        except AttributeError as exc:
            raise ExpansionError(f"Unexpected listing response for {node.id!r}") from exc
        return children
