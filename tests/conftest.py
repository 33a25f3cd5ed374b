"""
Shared fakes: a resource API client, a provider and a tree model that answer
from dictionaries instead of live services.
"""
import json
import os
from typing import Any, Dict, List, Optional

import pytest

from tfimport.errors import ProviderError
from tfimport.models.node import ResourceNode
from tfimport.models.schema import Attribute, Block, NestedBlock, ResourceSchema
from tfimport.provider import ImportedResource, ReadResult

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")

SUB = "/subscriptions/00000000-0000-0000-0000-000000000001"
RG = SUB + "/resourceGroups/rg-app"
STORAGE = RG + "/providers/Microsoft.Storage/storageAccounts/stapp"
CONTAINER = STORAGE + "/blobServices/default/containers/logs"
VM = RG + "/providers/Microsoft.Compute/virtualMachines/vm-web-01"


def load_fixture(name: str) -> Any:
    with open(os.path.join(FIXTURES, name), encoding="utf-8") as fh:
        return json.load(fh)


class FakeClient:
    def __init__(self, responses: Optional[Dict[str, Any]] = None) -> None:
        self.responses = responses or {}
        self.calls: List[str] = []

    def request(self, method, url, deadline):
        self.calls.append(url)
        response = self.responses[url.split("?", 1)[0]]
        if isinstance(response, Exception):
            raise response
        return response if isinstance(response, str) else json.dumps(response)


class FakeProvider:
    """
    ``resources`` maps import ID -> list of (type name, state) pairs; a state
    of None simulates a vanished resource.
    """

    def __init__(self, schemas: Dict[str, ResourceSchema], resources: Dict[str, list]) -> None:
        self.schemas = schemas
        self.resources = resources
        self.init_calls = 0
        self.init_error: Optional[Exception] = None
        self.imports: List[str] = []
        self.discarded: List[ImportedResource] = []

    def initialize(self, name, version, config_hcl, cache_dir, deadline):
        self.init_calls += 1
        if self.init_error is not None:
            raise self.init_error

    def get_schema(self, deadline):
        return self.schemas

    def import_resource_state(self, type_name, resource_id, deadline):
        self.imports.append(resource_id)
        if resource_id not in self.resources:
            raise ProviderError(f"Cannot import non-existent remote object {resource_id!r}")
        return [ImportedResource(t, state) for t, state in self.resources[resource_id]]

    def read_resource(self, type_name, prior_state, deadline):
        return ReadResult(prior_state)

    def discard_state(self, resources):
        self.discarded.extend(resources)


class FakeTree:
    def __init__(self, children: Optional[Dict[str, List[str]]] = None) -> None:
        self.children = children or {}
        self.expanded: List[str] = []

    def expand_default(self, node: ResourceNode, deadline):
        self.expanded.append(node.id)
        child_ids = self.children.get(node.id, [])
        if isinstance(child_ids, Exception):
            raise child_ids
        return [node.child(c) for c in child_ids]


def simple_schema(**attributes: Attribute) -> ResourceSchema:
    return ResourceSchema(Block(attributes=dict(attributes)))


def storage_account_schema() -> ResourceSchema:
    return ResourceSchema(Block(
        attributes={
            "id": Attribute(computed=True),
            "name": Attribute(required=True),
            "location": Attribute(required=True),
            "resource_group_name": Attribute(required=True),
            "account_tier": Attribute(required=True),
            "primary_access_key": Attribute(computed=True, sensitive=True),
            "min_tls_version": Attribute(optional=True, computed=True),
            "tags": Attribute(optional=True),
        },
        block_types={
            "network_rules": NestedBlock("list", Block(attributes={
                "default_action": Attribute(required=True),
                "ip_rules": Attribute(optional=True, computed=True),
            })),
        },
    ))


def container_schema() -> ResourceSchema:
    return simple_schema(
        id=Attribute(computed=True),
        name=Attribute(required=True),
        storage_account_name=Attribute(required=True),
        container_access_type=Attribute(optional=True),
    )


@pytest.fixture
def schemas() -> Dict[str, ResourceSchema]:
    return {
        "azurerm_resource_group": simple_schema(
            id=Attribute(computed=True),
            name=Attribute(required=True),
            location=Attribute(required=True),
            tags=Attribute(optional=True),
        ),
        "azurerm_storage_account": storage_account_schema(),
        "azurerm_storage_container": container_schema(),
        "azurerm_linux_virtual_machine": simple_schema(
            id=Attribute(computed=True),
            name=Attribute(required=True),
            size=Attribute(required=True),
        ),
    }


@pytest.fixture
def states() -> Dict[str, list]:
    return {
        RG: [("azurerm_resource_group", {
            "id": RG, "name": "rg-app", "location": "westeurope", "tags": {"env": "dev"},
        })],
        STORAGE: [("azurerm_storage_account", {
            "id": STORAGE,
            "name": "stapp",
            "location": "westeurope",
            "resource_group_name": "rg-app",
            "account_tier": "Standard",
            "primary_access_key": "c2VjcmV0",
            "min_tls_version": "TLS1_2",
            "tags": {},
            "network_rules": [{"default_action": "Deny", "ip_rules": ["10.0.0.1"]}],
        })],
        "https://stapp.blob.core.windows.net/logs": [("azurerm_storage_container", {
            "id": "https://stapp.blob.core.windows.net/logs",
            "name": "logs",
            "storage_account_name": "stapp",
            "container_access_type": "private",
        })],
    }
