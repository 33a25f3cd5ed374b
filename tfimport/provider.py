"""
Terraform provider access.

``Provider`` is the two-phase import/read protocol the pipeline drives.
``TerraformCliProvider`` implements it on top of the ``terraform`` binary:
``terraform init`` installs the pinned provider into a plugin cache,
``terraform import`` produces the prior-state handles and
``terraform show -json`` reads them back.
"""
import json
import os
import subprocess
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from jinja2 import Environment
from rich.console import Console

from tfimport.deadline import Deadline
from tfimport.errors import DeadlineExceededError, ProviderError, ProviderNotInitializedError
from tfimport.models.schema import ResourceSchema, schema_from_json

console = Console(stderr=True)

IMPORT_NAME = "imported"


@dataclass(frozen=True)
class ImportedResource:
    type_name: str
    state: Any   # opaque prior-state handle


@dataclass(frozen=True)
class ReadResult:
    new_state: Optional[Dict[str, Any]]


class Provider(Protocol):
    def initialize(self, name: str, version: str, config_hcl: str, cache_dir: Path, deadline: Deadline) -> None:
        ...

    def get_schema(self, deadline: Deadline) -> Dict[str, ResourceSchema]:
        ...

    def import_resource_state(self, type_name: str, resource_id: str, deadline: Deadline) -> List[ImportedResource]:
        ...

    def read_resource(self, type_name: str, prior_state: Any, deadline: Deadline) -> ReadResult:
        ...

    def discard_state(self, resources: Sequence[ImportedResource]) -> None:
        ...


@dataclass(frozen=True)
class StateHandle:
    state_file: Path
    address: str


_MAIN_TF = """\
terraform {
  required_providers {
    {{ name }} = {
      source  = "{{ source }}"
      version = "= {{ version }}"
    }
  }
}

provider "{{ name }}" {
{{ config | indent(2, first=True) }}
}
"""

_IMPORT_TF = """\
resource "{{ type_name }}" "{{ resource_name }}" {}
"""

_env = Environment(autoescape=False, keep_trailing_newline=True)


class TerraformCliProvider:
    def __init__(self, terraform_bin: str = "terraform", namespace: str = "hashicorp", verbose: bool = False) -> None:
        self.terraform_bin = terraform_bin
        self.namespace = namespace
        self.verbose = verbose
        self.work_dir: Optional[Path] = None
        self.source = ""
        self._env: Dict[str, str] = {}
        self._schemas: Optional[Dict[str, ResourceSchema]] = None

    def _run(self, args: Sequence[str], deadline: Deadline) -> subprocess.CompletedProcess:
        if self.work_dir is None:
            raise ProviderNotInitializedError("Terraform provider has not been initialized")
        if self.verbose:
            console.print(f"[dim]$ terraform {' '.join(args)}[/dim]")
        try:
            result = subprocess.run(
                [self.terraform_bin, *args],
                cwd=str(self.work_dir),
                env=self._env,
                capture_output=True,
                text=True,
                timeout=deadline.remaining(),
            )
        except subprocess.TimeoutExpired as exc:
            raise DeadlineExceededError(f"terraform {args[0]} timed out") from exc
        except FileNotFoundError as exc:
            raise ProviderError(f"terraform binary not found: {self.terraform_bin}") from exc
        if result.returncode != 0:
            detail = (result.stderr or result.stdout).strip()
            raise ProviderError(f"terraform {args[0]} failed: {detail}")
        return result

    def _run_json(self, args: Sequence[str], deadline: Deadline) -> Any:
        result = self._run(args, deadline)
        try:
            return json.loads(result.stdout)
        except ValueError as exc:
            raise ProviderError(f"terraform {args[0]} returned invalid JSON: {exc}") from exc

    def initialize(self, name: str, version: str, config_hcl: str, cache_dir: Path, deadline: Deadline) -> None:
        cache_dir = Path(cache_dir)
        plugin_cache = cache_dir / "plugin-cache"
        work_dir = cache_dir / f"{name}-{version}"
        plugin_cache.mkdir(parents=True, exist_ok=True)
        (work_dir / "states").mkdir(parents=True, exist_ok=True)

        self.source = f"{self.namespace}/{name}"
        (work_dir / "main.tf").write_text(
            _env.from_string(_MAIN_TF).render(
                name=name, source=self.source, version=version, config=config_hcl.strip()
            ),
            encoding="utf-8",
        )
        self._env = {
            **os.environ,
            "TF_PLUGIN_CACHE_DIR": str(plugin_cache),
            "TF_IN_AUTOMATION": "1",
            "TF_INPUT": "0",
        }
        self.work_dir = work_dir

        try:
            self._run(["init", "-input=false", "-no-color"], deadline)
            selected = self._run_json(["version", "-json"], deadline).get("provider_selections", {})
        except Exception:
            self.work_dir = None
            raise

        installed = next((v for k, v in selected.items() if k.endswith("/" + self.source)), None)
        if installed != version:
            self.work_dir = None
            raise ProviderError(f"Expected {self.source} {version}, terraform selected {installed}")

    def get_schema(self, deadline: Deadline) -> Dict[str, ResourceSchema]:
        if self._schemas is None:
            data = self._run_json(["providers", "schema", "-json"], deadline)
            schemas: Dict[str, ResourceSchema] = {}
            for address, provider in (data.get("provider_schemas") or {}).items():
                if not address.endswith("/" + self.source):
                    continue
                for type_name, raw in (provider.get("resource_schemas") or {}).items():
                    schemas[type_name] = schema_from_json(raw)
            self._schemas = schemas
        return self._schemas

    def import_resource_state(self, type_name: str, resource_id: str, deadline: Deadline) -> List[ImportedResource]:
        if self.work_dir is None:
            raise ProviderNotInitializedError("Terraform provider has not been initialized")
        state_file = self.work_dir / "states" / f"{uuid.uuid4().hex}.tfstate"
        stub = self.work_dir / "import.tf"
        stub.write_text(
            _env.from_string(_IMPORT_TF).render(type_name=type_name, resource_name=IMPORT_NAME),
            encoding="utf-8",
        )
        try:
            self._run(
                ["import", "-input=false", "-no-color", f"-state={state_file}",
                 f"{type_name}.{IMPORT_NAME}", resource_id],
                deadline,
            )
            with open(state_file, encoding="utf-8") as fh:
                state = json.load(fh)
        except Exception:
            state_file.unlink(missing_ok=True)
            raise
        finally:
            stub.unlink()

        handles = []
        for resource in state.get("resources", []):
            if resource.get("mode") != "managed":
                continue
            address = f"{resource['type']}.{resource['name']}"
            handles.append(ImportedResource(resource["type"], StateHandle(state_file, address)))
        if not handles:
            state_file.unlink()
        return handles

    def read_resource(self, type_name: str, prior_state: Any, deadline: Deadline) -> ReadResult:
        if not isinstance(prior_state, StateHandle):
            raise ProviderError(f"Unexpected prior state for {type_name}: {prior_state!r}")
        data = self._run_json(["show", "-json", "-no-color", str(prior_state.state_file)], deadline)
        resources = ((data.get("values") or {}).get("root_module") or {}).get("resources") or []
        for resource in resources:
            if resource.get("address") == prior_state.address:
                return ReadResult(resource.get("values"))
        return ReadResult(None)

    def discard_state(self, resources: Sequence[ImportedResource]) -> None:
        """Delete the state files behind ``resources``."""
        for path in {r.state.state_file for r in resources if isinstance(r.state, StateHandle)}:
            path.unlink(missing_ok=True)
