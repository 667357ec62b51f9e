"""
Domain layer for apibundle.

Contains pure domain objects with no I/O or side effects:
- APIDescriptor / APIIdentifier: the API being packaged
- DocumentDescriptor: one documentation item
- Sequence: a directioned mediation fragment
- Actor: the user an operation runs for
- ExportResult / ImportResult: operation outcomes with soft warnings
"""

from .api import APIDescriptor, APIIdentifier, APIStatus
from .document import DocumentDescriptor, DocumentSourceType
from .sequence import Sequence, SequenceDirection
from .actor import Actor, SUPER_TENANT_DOMAIN
from .operation import (
    ExportResult,
    ImportResult,
    ImportPhase,
    OperationWarning,
    WarningCode,
)

__all__ = [
    'APIDescriptor',
    'APIIdentifier',
    'APIStatus',
    'DocumentDescriptor',
    'DocumentSourceType',
    'Sequence',
    'SequenceDirection',
    'Actor',
    'SUPER_TENANT_DOMAIN',
    'ExportResult',
    'ImportResult',
    'ImportPhase',
    'OperationWarning',
    'WarningCode',
]
