"""
Service layer for apibundle.

Contains business logic that orchestrates domain objects and infrastructure:
- ExportService: API -> archive (asset exporters, metadata, compression)
- ImportService: archive -> API (extraction, reconciliation, attachment)

Services are the primary API for commands to use.
They handle coordination between infrastructure and domain layers.
"""

from .export_service import ExportService
from .import_service import ImportService, reconcile_tiers

__all__ = [
    'ExportService',
    'ImportService',
    'reconcile_tiers',
]
