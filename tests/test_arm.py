"""
ARM client and tree expansion tests — HTTP is served by httpx.MockTransport.
"""
import json

import httpx
import pytest

from conftest import RG, STORAGE, SUB, VM, load_fixture
from tfimport.arm import ArmClient
from tfimport.deadline import Deadline
from tfimport.errors import DeadlineExceededError, ExpansionError, ResourceApiError
from tfimport.mappings import build_import_config
from tfimport.models.node import ResourceNode
from tfimport.resolver import ResourceTypeResolver
from tfimport.tree import ArmTreeModel


def _client(handler):
    return ArmClient(token="t0ken", transport=httpx.MockTransport(handler))


class TestArmClient:
    def test_bearer_token_and_body(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"id": RG})

        body = _client(handler).request("GET", RG + "?api-version=2021-04-01", Deadline(30))
        assert json.loads(body) == {"id": RG}
        assert seen[0].headers["Authorization"] == "Bearer t0ken"
        assert seen[0].url.path == RG
        assert seen[0].url.params["api-version"] == "2021-04-01"

    def test_token_fetched_once(self):
        tokens = []

        def provider():
            tokens.append("x")
            return "from-cli"

        client = ArmClient(token_provider=provider,
                           transport=httpx.MockTransport(lambda r: httpx.Response(200, text="{}")))
        client.request("GET", RG, Deadline(30))
        client.request("GET", RG, Deadline(30))
        assert tokens == ["x"]

    def test_http_error_status(self):
        def handler(request):
            return httpx.Response(404, json={"error": {"code": "ResourceNotFound", "message": "gone"}})

        with pytest.raises(ResourceApiError, match="404: gone") as excinfo:
            _client(handler).request("GET", VM, Deadline(30))
        assert excinfo.value.status_code == 404

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ResourceApiError, match="connection refused"):
            _client(handler).request("GET", VM, Deadline(30))

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(DeadlineExceededError):
            _client(handler).request("GET", VM, Deadline(30))

    def test_expired_deadline(self):
        with pytest.raises(DeadlineExceededError):
            _client(lambda r: httpx.Response(200)).request("GET", VM, Deadline(-1))

    def test_probe_through_client(self):
        client = _client(lambda r: httpx.Response(200, json=load_fixture("vm_linux.json")))
        resolver = ResourceTypeResolver.from_config(build_import_config(), client)
        assert resolver.resolve(VM, Deadline(30)) == "azurerm_linux_virtual_machine"


class TestArmTreeModel:
    def test_resource_group_children(self):
        requested = []

        def handler(request):
            requested.append(request.url)
            return httpx.Response(200, json={"value": [{"id": STORAGE, "name": "stapp"}, {"id": VM, "name": "vm"}]})

        node = ResourceNode(RG)
        children = ArmTreeModel(_client(handler)).expand_default(node, Deadline(30))
        assert [c.id for c in children] == [STORAGE, VM]
        assert children[0].parent is node
        assert children[0].parent_id == RG
        assert requested[0].path == RG + "/resources"

    def test_next_link_followed(self):
        def handler(request):
            if "skiptoken" in str(request.url):
                return httpx.Response(200, json={"value": [{"id": SUB + "/resourceGroups/rg-two"}]})
            return httpx.Response(200, json={
                "value": [{"id": RG}],
                "nextLink": "https://management.azure.com" + SUB + "/resourceGroups?api-version=2021-04-01&$skiptoken=abc",
            })

        children = ArmTreeModel(_client(handler)).expand_default(ResourceNode(SUB), Deadline(30))
        assert [c.id for c in children] == [RG, SUB + "/resourceGroups/rg-two"]

    def test_page_limit(self):
        def handler(request):
            return httpx.Response(200, json={"value": [{"id": RG}], "nextLink": str(request.url)})

        children = ArmTreeModel(_client(handler), max_pages=3).expand_default(ResourceNode(SUB), Deadline(30))
        assert len(children) == 3

    def test_leaf_has_no_children(self):
        def handler(request):
            raise AssertionError("no request expected")

        key_vault = RG + "/providers/Microsoft.KeyVault/vaults/kv1"
        assert ArmTreeModel(_client(handler)).expand_default(ResourceNode(key_vault), Deadline(30)) == []

    def test_listing_failure(self):
        def handler(request):
            return httpx.Response(403, json={"error": {"message": "AuthorizationFailed"}})

        with pytest.raises(ExpansionError, match="AuthorizationFailed"):
            ArmTreeModel(_client(handler)).expand_default(ResourceNode(RG), Deadline(30))

    def test_unexpected_body(self):
        with pytest.raises(ExpansionError):
            ArmTreeModel(_client(lambda r: httpx.Response(200, json=[1, 2]))).expand_default(
                ResourceNode(RG), Deadline(30)
            )
