"""Azure Resource Manager HTTP client."""
import json
import subprocess
from typing import Any, Callable, Dict, Optional

import httpx

from tfimport.deadline import Deadline
from tfimport.errors import DeadlineExceededError, ResourceApiError

ARM_RESOURCE = "https://management.azure.com/"


def az_cli_token(resource: str = ARM_RESOURCE) -> str:
    """Fetch an access token from the Azure CLI login."""
    try:
        result = subprocess.run(
            ["az", "account", "get-access-token", "--resource", resource, "-o", "json"],
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
        raise ResourceApiError(f"Unable to get a token from the Azure CLI: {exc}") from exc
    if result.returncode != 0:
        raise ResourceApiError(f"az account get-access-token failed: {result.stderr.strip()}")
    try:
        return json.loads(result.stdout)["accessToken"]
    except (ValueError, KeyError) as exc:
        raise ResourceApiError(f"Unexpected az CLI token output: {exc}") from exc


class ArmClient:
    """Synchronous client for the ARM REST API."""

    def __init__(
        self,
        endpoint: str = "https://management.azure.com",
        token: Optional[str] = None,
        token_provider: Callable[[], str] = az_cli_token,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self._token = token
        self._token_provider = token_provider
        self._client = httpx.Client(
            base_url=self.endpoint,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ArmClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _headers(self) -> Dict[str, str]:
        if self._token is None:
            self._token = self._token_provider()
        return {"Authorization": f"Bearer {self._token}"}

    def request(self, method: str, url: str, deadline: Deadline) -> str:
        """Send ``method`` to ``url`` (absolute or endpoint-relative), return the body."""
        try:
            response = self._client.request(
                method, url, headers=self._headers(), timeout=deadline.remaining()
            )
        except httpx.TimeoutException as exc:
            raise DeadlineExceededError(f"{method} {url} timed out") from exc
        except httpx.HTTPError as exc:
            raise ResourceApiError(f"{method} {url} failed: {exc}") from exc

        if not response.is_success:
            try:
                detail = response.json().get("error", {}).get("message", response.text)
            except (ValueError, AttributeError):
                detail = response.text
            raise ResourceApiError(
                f"{method} {url} returned {response.status_code}: {detail}", response.status_code
            )
        return response.text

    def get_json(self, url: str, deadline: Deadline) -> Any:
        body = self.request("GET", url, deadline)
        try:
            return json.loads(body)
        except ValueError as exc:
            raise ResourceApiError(f"GET {url} returned invalid JSON: {exc}") from exc
