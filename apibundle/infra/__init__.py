"""
Infrastructure layer for apibundle.

Contains abstractions for external systems:
- CatalogStore: system of record for APIs and their assets
- LocalCatalogStore: file-backed CatalogStore
- FileStore: JSON file persistence
- workspace / archiver: scratch directories and ZIP containers

These provide clean interfaces that can be mocked for testing.
"""

from .catalog_store import (
    CatalogStore,
    ContentAccessor,
    SequenceCatalog,
    document_ref,
    icon_ref,
    wsdl_ref,
)
from .local_store import LocalCatalogStore
from .file_store import FileStore
from .workspace import create_workspace, ensure_directory
from .archiver import compress, extract, save_upload

__all__ = [
    'CatalogStore',
    'ContentAccessor',
    'SequenceCatalog',
    'document_ref',
    'icon_ref',
    'wsdl_ref',
    'LocalCatalogStore',
    'FileStore',
    'create_workspace',
    'ensure_directory',
    'compress',
    'extract',
    'save_upload',
]
