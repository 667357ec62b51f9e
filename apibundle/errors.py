"""
Error classes for apibundle.

Hard failures are exceptions; soft failures are recorded as
OperationWarning entries on the operation result and never raised.

Export side:
- PackagingError: workspace I/O (directory creation, file writes)
- AssetExportError / SequenceExportError: asset retrieval failures that
  abort the export (documentation, sequences)
- APINotFoundError: the requested API does not exist in the store

Import side:
- ArchiveCorruptError: the uploaded container is unreadable
- MetadataParseError, RegistrationError, DocumentImportError: fatal
  import failures, each tagged with the phase it failed in

Every external call is attempted exactly once; retry policy belongs
to the caller.
"""

from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .domain.operation import ImportPhase


class APIBundleError(Exception):
    """Base exception for apibundle."""
    pass


class PackagingKind(Enum):
    """What part of workspace materialization failed."""
    DIRECTORY_CREATION = "directory_creation"
    FILE_WRITE = "file_write"


class AssetKind(Enum):
    """Mandatory asset an export failure relates to."""
    DOCUMENTATION = "documentation"
    SEQUENCE = "sequence"


class PackagingError(APIBundleError):
    """Raised when the workspace cannot be created or written."""

    def __init__(self, message: str, kind: PackagingKind = PackagingKind.DIRECTORY_CREATION,
                 path: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.path = path


class AssetExportError(APIBundleError):
    """Raised when an asset that must be exported cannot be."""

    def __init__(self, message: str, kind: AssetKind = AssetKind.DOCUMENTATION):
        super().__init__(message)
        self.kind = kind


class SequenceExportError(AssetExportError):
    """
    Raised when a referenced sequence cannot be resolved or written.

    Sequences are mandatory once referenced: dropping one silently would
    produce a descriptor pointing at a nonexistent resource.
    """

    def __init__(self, message: str, direction: Optional[str] = None,
                 name: Optional[str] = None):
        super().__init__(message, AssetKind.SEQUENCE)
        self.direction = direction
        self.name = name


class APINotFoundError(APIBundleError):
    """Raised when the API to export is not in the catalog."""
    pass


class InvalidRequestError(APIBundleError):
    """Raised when an operation is invoked with missing or malformed arguments."""
    pass


class ArchiveCorruptError(APIBundleError):
    """Raised when an archive cannot be read as a valid container."""
    pass


class CatalogError(APIBundleError):
    """
    Raised by Catalog Store implementations.

    Services translate this into the phase-specific error (or a soft
    warning) at their boundary.
    """
    pass


class ImportFailedError(APIBundleError):
    """
    Base for fatal import failures.

    Carries the phase the import was in when it failed so callers can
    tell a bad archive apart from a rejected registration.
    """

    def __init__(self, message: str, phase: Optional['ImportPhase'] = None):
        super().__init__(message)
        self.phase = phase


class MetadataParseError(ImportFailedError):
    """Raised when api.json (or docs.json) is missing, malformed or incomplete."""
    pass


class RegistrationError(ImportFailedError):
    """Raised when the Catalog Store rejects the imported descriptor."""
    pass


class DocumentImportError(ImportFailedError):
    """Raised when any documentation entry cannot be re-attached."""
    pass
