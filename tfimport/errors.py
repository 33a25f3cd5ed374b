"""
Exception hierarchy for tfimport.

Every error raised by the package derives from TfImportError. The CLI maps
``exit_code`` to the process exit status; the recursive crawl turns any of
these into an inline annotation instead of aborting.
"""
from typing import Optional


class TfImportError(Exception):
    """Base exception for tfimport."""

    exit_code: int = 1


class ConfigError(TfImportError):
    """Invalid configuration file, provider HCL or setting."""

    exit_code = 2


class TemplateError(TfImportError):
    """An endpoint template could not be constructed."""


class TemplateBuildError(TemplateError):
    """A placeholder value was missing while building an identifier."""


class ResolutionError(TfImportError):
    """Resolving the resource type of an identifier failed."""


class ResourceApiError(ResolutionError):
    """The resource API call failed at the transport or HTTP level."""

    exit_code = 3

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class MalformedProbeResponseError(ResolutionError):
    """The VM probe returned a body that is not a JSON object."""


class UnresolvedTypeError(ResolutionError):
    """No resource type is mapped for the identifier."""


class RemapError(TfImportError):
    """The import identifier could not be computed."""


class ProviderError(TfImportError):
    """The provider process failed."""

    exit_code = 4


class ProviderNotInitializedError(ProviderError):
    """The provider was used before it was initialized."""


class NullStateError(ProviderError):
    """Reading an imported resource returned no state."""

    def __init__(self, import_id: str) -> None:
        self.import_id = import_id
        super().__init__(f"Null state on read for {import_id!r}")


class SchemaNotFoundError(ProviderError):
    """The provider does not declare a schema for a resource type."""


class ExpansionError(TfImportError):
    """Listing the children of a node failed."""


class ActionError(TfImportError):
    """An action was invoked with missing or unknown metadata."""


class DeadlineExceededError(TfImportError):
    """The action's deadline expired before a blocking call completed."""

    exit_code = 124
