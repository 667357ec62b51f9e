"""
Operation result domain objects for apibundle.

Provides standardized result types for export and import operations,
including the soft warnings recorded along the way.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Any, List, Optional

from .api import APIDescriptor


class ImportPhase(Enum):
    """
    Phases of a single import.

    Imports move strictly forward through these phases. FAILED is
    terminal and reached only from a hard failure.
    """
    PENDING = "pending"
    EXTRACTED = "extracted"
    METADATA_PARSED = "metadata_parsed"
    TIERS_RECONCILED = "tiers_reconciled"
    REGISTERED = "registered"
    DOCUMENTS = "documents"
    ASSETS_ATTACHED = "assets_attached"
    DONE = "done"
    FAILED = "failed"


class WarningCode(Enum):
    """Kinds of soft failure recorded on a result."""
    UNSUPPORTED_TIER = "unsupported_tier"
    ICON_SKIPPED = "icon_skipped"
    WSDL_SKIPPED = "wsdl_skipped"
    DEFINITION_SKIPPED = "definition_skipped"
    SEQUENCE_SKIPPED = "sequence_skipped"


@dataclass(frozen=True)
class OperationWarning:
    """A soft failure: recorded, logged, never raised."""
    code: WarningCode
    message: str
    subject: Optional[str] = None  # e.g. the tier or sequence name

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'code': self.code.value,
            'message': self.message,
        }
        if self.subject:
            result['subject'] = self.subject
        return result

    def __str__(self) -> str:
        return self.message


@dataclass
class ExportResult:
    """Result of exporting one API."""
    workspace: Optional[Path] = None
    archive_path: Optional[Path] = None
    root_name: Optional[str] = None
    icon_exported: bool = False
    documents_exported: int = 0
    sequences_exported: int = 0
    wsdl_exported: bool = False
    definition_exported: bool = False
    warnings: List[OperationWarning] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.archive_path is not None

    def warn(self, code: WarningCode, message: str, subject: Optional[str] = None) -> None:
        self.warnings.append(OperationWarning(code, message, subject))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'type': 'export',
            'archive': str(self.archive_path) if self.archive_path else None,
            'root': self.root_name,
            'icon': self.icon_exported,
            'documents': self.documents_exported,
            'sequences': self.sequences_exported,
            'wsdl': self.wsdl_exported,
            'definition': self.definition_exported,
            'warnings': [w.to_dict() for w in self.warnings],
        }


@dataclass
class ImportResult:
    """
    Result of importing one archive.

    ``phase`` is the last phase reached; a completed import ends in
    DONE even when warnings were recorded.
    """
    phase: ImportPhase = ImportPhase.PENDING
    workspace: Optional[Path] = None
    root_name: Optional[str] = None
    api_id: Optional[str] = None
    descriptor: Optional[APIDescriptor] = None
    icon_attached: bool = False
    documents_attached: int = 0
    sequences_attached: int = 0
    wsdl_attached: bool = False
    definition_attached: bool = False
    warnings: List[OperationWarning] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.phase == ImportPhase.DONE

    def warn(self, code: WarningCode, message: str, subject: Optional[str] = None) -> None:
        self.warnings.append(OperationWarning(code, message, subject))

    def warnings_of(self, code: WarningCode) -> List[OperationWarning]:
        return [w for w in self.warnings if w.code == code]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'type': 'import',
            'phase': self.phase.value,
            'api_id': self.api_id,
            'root': self.root_name,
            'icon': self.icon_attached,
            'documents': self.documents_attached,
            'sequences': self.sequences_attached,
            'wsdl': self.wsdl_attached,
            'definition': self.definition_attached,
            'warnings': [w.to_dict() for w in self.warnings],
        }
