"""
Export service for apibundle.

Packages one registered API into a portable archive:

    <name>-<version>/
      Meta-information/api.json
      Meta-information/swagger.json    (optional)
      Image/icon.<ext>                 (optional)
      Docs/docs.json + Docs/<file>     (when the API has documents)
      Sequences/<dir>-sequence/<name>.xml
      WSDL/<name>-<version>.wsdl       (optional)

Icon, WSDL and definition are best effort: a missing or unreadable
asset is recorded as a warning. Documentation and referenced
sequences are mandatory once present.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Generator, Optional

from .. import layout
from ..config import load_config
from ..domain import (
    Actor,
    APIDescriptor,
    APIIdentifier,
    APIStatus,
    DocumentSourceType,
    ExportResult,
    SequenceDirection,
    WarningCode,
)
from ..errors import (
    APINotFoundError,
    AssetExportError,
    AssetKind,
    CatalogError,
    PackagingError,
    SequenceExportError,
)
from ..infra.archiver import compress
from ..infra.catalog_store import CatalogStore, document_ref, icon_ref, wsdl_ref
from ..infra.workspace import create_workspace, ensure_directory, write_bytes, write_text
from ..metadata import encode_descriptor, encode_documents

logger = logging.getLogger(__name__)


class ExportService:
    """
    Service for exporting an API to an archive.

    Example:
        service = ExportService(store)
        identifier = APIIdentifier("acme", "Weather", "1.0")

        for progress in service.export(identifier, Actor("admin")):
            print(progress)  # "Exporting icon..."

        result = service.last_result
        print(f"Archive written to {result.archive_path}")
    """

    def __init__(self, store: CatalogStore, config: Optional[Dict[str, Any]] = None):
        """
        Initialize ExportService.

        Args:
            store: Catalog Store holding the API
            config: Configuration dict (loads default if None)
        """
        self.store = store
        self.config = config or load_config()
        self.last_result: Optional[ExportResult] = None

    def _workspace_base(self) -> Optional[str]:
        return self.config.get('workspace', {}).get('base_dir') or None

    def export(
        self,
        identifier: APIIdentifier,
        actor: Actor
    ) -> Generator[str, None, ExportResult]:
        """
        Export one API.

        Yields progress messages, returns ExportResult. The workspace
        is left in place; deleting it is the caller's job.

        Args:
            identifier: API to export
            actor: User the export runs for (selects the sequence tenant)

        Raises:
            APINotFoundError: If the API is not in the store
            PackagingError: If the workspace cannot be written
            AssetExportError: If documentation cannot be exported
            SequenceExportError: If a referenced sequence cannot be exported
        """
        result = ExportResult()
        self.last_result = result

        logger.info(f"Exporting API {identifier} for {actor}")

        result.workspace = create_workspace(self._workspace_base())
        result.root_name = layout.archive_root_name(identifier.api_name, identifier.version)
        root = ensure_directory(result.workspace / result.root_name)

        try:
            descriptor = self.store.get_api(identifier)
        except CatalogError as e:
            logger.error(f"API {identifier} not found: {e}")
            raise APINotFoundError(f"Requested API {identifier} not found") from e

        yield "Exporting icon..."
        self._export_icon(root, descriptor, result)

        documents = self.store.list_documents(identifier)
        if documents:
            yield f"Exporting {len(documents)} documents..."
            self._export_documents(root, descriptor, documents, result)

        if descriptor.wsdl_url:
            yield "Exporting WSDL..."
            self._export_wsdl(root, descriptor, result)

        yield "Exporting sequences..."
        self._export_sequences(root, descriptor, actor, result)

        yield "Exporting definition..."
        self._export_definition(root, descriptor, result)

        yield "Writing api.json..."
        descriptor.status = APIStatus.CREATED
        write_text(layout.api_file(root), encode_descriptor(descriptor))

        yield "Compressing archive..."
        result.archive_path = compress(root)

        logger.info(f"Exported API {identifier} to {result.archive_path}")
        return result

    def _export_icon(self, root: Path, descriptor: APIDescriptor, result: ExportResult) -> None:
        """Copy the thumbnail to Image/icon.<ext> if it exists and its type is known."""
        ref = icon_ref(descriptor.identifier)
        try:
            if not self.store.content.exists(ref):
                logger.debug(f"No icon stored for {descriptor}")
                return

            media_type = self.store.content.media_type(ref)
            extension = layout.icon_extension(media_type)
            if extension is None:
                message = f"Unsupported media type for icon {ref}: {media_type}. Skipping thumbnail export."
                logger.warning(message)
                result.warn(WarningCode.ICON_SKIPPED, message, media_type)
                return

            content = self.store.content.read(ref)
        except (CatalogError, OSError) as e:
            message = f"Failed to retrieve icon of {descriptor}: {e}"
            logger.warning(message)
            result.warn(WarningCode.ICON_SKIPPED, message)
            return

        write_bytes(layout.icon_file(root, extension), content)
        result.icon_exported = True
        logger.debug(f"Thumbnail of {descriptor} exported as icon.{extension}")

    def _export_documents(self, root: Path, descriptor: APIDescriptor,
                          documents, result: ExportResult) -> None:
        """Copy FILE document contents to Docs/ and write docs.json."""
        file_names = set()
        try:
            for document in documents:
                if document.source_type is DocumentSourceType.FILE:
                    file_name = document.file_name
                    if not file_name:
                        raise AssetExportError(
                            f"Document '{document.name}' has no file path",
                            AssetKind.DOCUMENTATION,
                        )
                    # Docs/ is flat and also holds the manifest
                    if file_name == layout.DOCS_MANIFEST or file_name in file_names:
                        message = (f"Document '{document.name}' file name '{file_name}' collides "
                                   f"with another entry in {layout.DOCS_DIR}/")
                        logger.error(f"{message} ({descriptor})")
                        raise AssetExportError(message, AssetKind.DOCUMENTATION)
                    file_names.add(file_name)
                    content = self.store.content.read(
                        document_ref(descriptor.identifier, file_name)
                    )
                    write_bytes(layout.docs_dir(root) / file_name, content)
                    document.file_path = layout.document_archive_path(file_name)
                elif document.source_type in (DocumentSourceType.INLINE, DocumentSourceType.URL):
                    pass
                else:
                    raise AssetExportError(
                        f"Unknown source type of document '{document.name}'",
                        AssetKind.DOCUMENTATION,
                    )

            write_text(layout.docs_manifest(root), encode_documents(documents))
        except AssetExportError:
            raise
        except (CatalogError, PackagingError, OSError) as e:
            logger.error(f"I/O error while writing API documentation of {descriptor}: {e}")
            raise AssetExportError(
                f"Failed to export documentation of {descriptor}: {e}",
                AssetKind.DOCUMENTATION,
            ) from e

        result.documents_exported = len(documents)
        logger.debug(f"API documentation of {descriptor} exported successfully")

    def _export_wsdl(self, root: Path, descriptor: APIDescriptor, result: ExportResult) -> None:
        """Copy the WSDL to WSDL/<name>-<version>.wsdl if it is stored."""
        ref = wsdl_ref(descriptor.identifier)
        try:
            if not self.store.content.exists(ref):
                message = f"WSDL of {descriptor} is referenced but not stored"
                logger.warning(message)
                result.warn(WarningCode.WSDL_SKIPPED, message)
                return
            content = self.store.content.read(ref)
        except (CatalogError, OSError) as e:
            message = f"Failed to retrieve WSDL of {descriptor}: {e}"
            logger.warning(message)
            result.warn(WarningCode.WSDL_SKIPPED, message)
            return

        write_bytes(layout.wsdl_file(root, descriptor.name, descriptor.version), content)
        result.wsdl_exported = True
        logger.debug(f"WSDL of {descriptor} exported successfully")

    def _export_sequences(self, root: Path, descriptor: APIDescriptor,
                          actor: Actor, result: ExportResult) -> None:
        """Write every referenced sequence from the actor's tenant catalog."""
        catalog = None
        for direction in SequenceDirection:
            name = descriptor.sequence_ref(direction)
            if not name:
                continue
            try:
                if catalog is None:
                    catalog = self.store.sequences(actor.tenant_domain)
                sequence = catalog.get(direction, name)
                write_bytes(layout.sequence_file(root, direction.value, name), sequence.config)
            except (CatalogError, PackagingError, OSError) as e:
                logger.error(f"Error while retrieving {direction.value} sequence '{name}': {e}")
                raise SequenceExportError(
                    f"Failed to export {direction.value} sequence '{name}' of {descriptor}: {e}",
                    direction=direction.value,
                    name=name,
                ) from e
            result.sequences_exported += 1
            logger.debug(f"{direction.value} sequence '{name}' of {descriptor} exported")

    def _export_definition(self, root: Path, descriptor: APIDescriptor, result: ExportResult) -> None:
        """Write the swagger definition to Meta-information/swagger.json if stored."""
        try:
            definition = self.store.get_definition(descriptor.identifier)
        except (CatalogError, OSError) as e:
            message = f"Failed to retrieve definition of {descriptor}: {e}"
            logger.warning(message)
            result.warn(WarningCode.DEFINITION_SKIPPED, message)
            return

        if definition is None:
            logger.debug(f"No definition stored for {descriptor}")
            return

        write_text(layout.definition_file(root), definition)
        result.definition_exported = True
