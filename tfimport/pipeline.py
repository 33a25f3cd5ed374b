from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from rich.console import Console

from tfimport.config import Settings
from tfimport.deadline import Deadline
from tfimport.errors import NullStateError, ProviderNotInitializedError, SchemaNotFoundError
from tfimport.models.schema import ResourceSchema
from tfimport.provider import Provider
from tfimport.serializer import serialize

console = Console(stderr=True)


@dataclass
class ImportedState:
    type_name: str
    schema: ResourceSchema
    state: Dict[str, Any]


class ImportReadPipeline:
    """
    Drives a provider through import then read for one import ID.

    The provider is initialized lazily, once per pipeline. A failed attempt
    leaves the pipeline uninitialized so the next call tries again.
    """

    def __init__(self, provider: Provider, settings: Settings) -> None:
        self.provider = provider
        self.settings = settings
        self.initialized = False

    def ensure_initialized(self, deadline: Deadline) -> None:
        if self.initialized:
            return
        cache_dir = Path(self.settings.cache_dir).expanduser()
        cache_dir.mkdir(parents=True, exist_ok=True)
        if self.settings.verbose:
            console.print(
                f"[dim]Initializing {self.settings.provider_name} {self.settings.provider_version} in {cache_dir}[/dim]"
            )
        self.provider.initialize(
            self.settings.provider_name,
            self.settings.provider_version,
            self.settings.provider_config,
            cache_dir,
            deadline,
        )
        self.initialized = True

    def fetch(self, import_id: str, type_name: str, deadline: Deadline) -> List[ImportedState]:
        if not self.initialized:
            raise ProviderNotInitializedError("Provider used before initialization")
        schemas = self.provider.get_schema(deadline)

        resources = self.provider.import_resource_state(type_name, import_id, deadline)
        imported = []
        try:
            for resource in resources:
                deadline.check()
                read = self.provider.read_resource(resource.type_name, resource.state, deadline)
                if read.new_state is None:
                    raise NullStateError(import_id)
                schema = schemas.get(resource.type_name)
                if schema is None:
                    raise SchemaNotFoundError(f"No schema for resource type {resource.type_name!r}")
                imported.append(ImportedState(resource.type_name, schema, read.new_state))
        finally:
            # Prior state is only needed until it has been read
            self.provider.discard_state(resources)
        return imported

    def render(self, import_id: str, type_name: str, deadline: Deadline) -> str:
        """Import ``import_id`` and return HCL for every resource it expands to."""
        self.ensure_initialized(deadline)
        return "".join(
            serialize(item.type_name, item.schema, item.state) + "\n"
            for item in self.fetch(import_id, type_name, deadline)
        )
