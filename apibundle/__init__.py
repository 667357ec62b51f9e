"""
apibundle - Portable export and import of API definitions.

apibundle packages a registered API (descriptor, icon, documentation,
WSDL, interface definition and mediation sequences) into a single ZIP
archive, and rebuilds an equivalent API from such an archive in another
catalog, repairing it against what the target supports.

Quick Start:
    import apibundle

    bundle = apibundle.APIBundle()

    # Export
    result = bundle.export_api("Weather", "1.0", "acme")
    print(result.archive_path)

    # Import
    result = bundle.import_api("Weather-1.0.zip", apibundle.Actor("admin"))
    for warning in result.warnings:
        print(warning)

Domain Objects:
    APIDescriptor - The API being moved
    DocumentDescriptor - One documentation item
    Sequence - A directioned mediation fragment
    Actor - The user an operation runs for

Services:
    ExportService - API -> archive
    ImportService - archive -> API
"""

__version__ = "0.1.0"

# High-level API
from .api import APIBundle

# Domain objects
from .domain import (
    Actor,
    APIDescriptor,
    APIIdentifier,
    APIStatus,
    DocumentDescriptor,
    DocumentSourceType,
    Sequence,
    SequenceDirection,
    ExportResult,
    ImportResult,
    ImportPhase,
    WarningCode,
)

# Services (for advanced use)
from .services import (
    ExportService,
    ImportService,
)

# Stores
from .infra import CatalogStore, LocalCatalogStore

# Configuration
from .config import load_config, save_config

__all__ = [
    # Version
    "__version__",
    # High-level API
    "APIBundle",
    # Domain objects
    "Actor",
    "APIDescriptor",
    "APIIdentifier",
    "APIStatus",
    "DocumentDescriptor",
    "DocumentSourceType",
    "Sequence",
    "SequenceDirection",
    "ExportResult",
    "ImportResult",
    "ImportPhase",
    "WarningCode",
    # Services
    "ExportService",
    "ImportService",
    # Stores
    "CatalogStore",
    "LocalCatalogStore",
    # Configuration
    "load_config",
    "save_config",
]
