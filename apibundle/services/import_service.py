"""
Import service for apibundle.

Rebuilds an API from an archive produced by the export service (or
any exporter following the same layout) and registers it in the
target Catalog Store.

An import moves through fixed phases:

    EXTRACTED -> METADATA_PARSED -> TIERS_RECONCILED -> REGISTERED
              -> DOCUMENTS -> ASSETS_ATTACHED -> DONE

A hard failure (unreadable archive, bad api.json, rejected
registration, any documentation failure) ends the import in FAILED and
propagates. Icon, sequences, WSDL and definition are best effort and
only add warnings.
"""

import logging
import mimetypes
from pathlib import Path
from typing import BinaryIO, Dict, Any, Generator, Iterable, List, Optional, Union

from .. import layout
from ..config import load_config
from ..domain import (
    Actor,
    APIDescriptor,
    DocumentDescriptor,
    DocumentSourceType,
    ImportPhase,
    ImportResult,
    Sequence,
    SequenceDirection,
    WarningCode,
)
from ..errors import (
    CatalogError,
    DocumentImportError,
    MetadataParseError,
    RegistrationError,
)
from ..infra.archiver import extract, save_upload
from ..infra.catalog_store import CatalogStore
from ..infra.workspace import create_workspace
from ..metadata import decode_descriptor, decode_documents

logger = logging.getLogger(__name__)


def reconcile_tiers(descriptor: APIDescriptor, supported: Iterable[str]) -> List[str]:
    """
    Drop tiers the target environment does not offer.

    Args:
        descriptor: Descriptor to repair in place
        supported: Tier names the target supports

    Returns:
        Removed tier names, sorted
    """
    unsupported = sorted(descriptor.available_tiers - set(supported))
    if unsupported:
        descriptor.remove_tiers(set(unsupported))
    return unsupported


class ImportService:
    """
    Service for importing an API from an archive.

    Example:
        service = ImportService(store)

        for progress in service.import_archive(Path("Weather-1.0.zip"), Actor("admin")):
            print(progress)  # "Registering API..."

        result = service.last_result
        print(f"Registered {result.api_id} with {len(result.warnings)} warnings")
    """

    def __init__(self, store: CatalogStore, config: Optional[Dict[str, Any]] = None):
        """
        Initialize ImportService.

        Args:
            store: Catalog Store to register the API in
            config: Configuration dict (loads default if None)
        """
        self.store = store
        self.config = config or load_config()
        self.last_result: Optional[ImportResult] = None

    def _workspace_base(self) -> Optional[str]:
        return self.config.get('workspace', {}).get('base_dir') or None

    def import_archive(
        self,
        archive: Union[str, Path, BinaryIO],
        actor: Actor
    ) -> Generator[str, None, ImportResult]:
        """
        Import an API from an archive file or uploaded stream.

        The archive is extracted into a fresh workspace, which is left
        in place for the caller to delete.

        Args:
            archive: Path to a ZIP archive, or a binary stream holding one
            actor: User the import runs for

        Yields:
            Progress messages

        Returns:
            ImportResult (also kept as ``last_result``)
        """
        result = ImportResult()
        self.last_result = result

        try:
            result.workspace = create_workspace(self._workspace_base())

            if isinstance(archive, (str, Path)):
                archive_path = Path(archive)
            else:
                yield "Receiving archive..."
                archive_path = save_upload(archive, result.workspace)

            yield "Extracting archive..."
            result.root_name = extract(archive_path, result.workspace)
            result.phase = ImportPhase.EXTRACTED
        except Exception:
            result.phase = ImportPhase.FAILED
            raise

        logger.info(f"Extracted archive {archive_path} (root: {result.root_name})")
        return (yield from self.import_directory(result.workspace / result.root_name, actor, result))

    def import_directory(
        self,
        root: Path,
        actor: Actor,
        result: Optional[ImportResult] = None
    ) -> Generator[str, None, ImportResult]:
        """
        Import an API from an already extracted archive root.

        Args:
            root: Archive root directory (holds Meta-information/)
            actor: User the import runs for
            result: Result to continue (a new one when called directly)
        """
        if result is None:
            result = ImportResult(phase=ImportPhase.EXTRACTED, root_name=Path(root).name)
            self.last_result = result

        try:
            yield from self._reconcile(Path(root), actor, result)
        except Exception:
            result.phase = ImportPhase.FAILED
            raise

        logger.info(
            f"Imported API {result.descriptor} as {result.api_id} "
            f"({len(result.warnings)} warnings)"
        )
        return result

    def _reconcile(self, root: Path, actor: Actor, result: ImportResult) -> Generator[str, None, None]:
        yield "Reading api.json..."
        descriptor = self._read_descriptor(root)
        result.descriptor = descriptor
        result.phase = ImportPhase.METADATA_PARSED

        yield "Reconciling tiers..."
        for tier in reconcile_tiers(descriptor, self.store.get_supported_tiers()):
            message = f"Tier '{tier}' of {descriptor} is not supported and was removed"
            logger.warning(message)
            result.warn(WarningCode.UNSUPPORTED_TIER, message, tier)
        result.phase = ImportPhase.TIERS_RECONCILED

        yield "Registering API..."
        # Identity-dependent references are re-set only if their asset is attached
        descriptor.thumbnail_url = None
        descriptor.wsdl_url = None
        try:
            result.api_id = self.store.register(descriptor, actor)
        except CatalogError as e:
            logger.error(f"Error while adding API {descriptor}: {e}")
            raise RegistrationError(
                f"Failed to register API {descriptor}: {e}", ImportPhase.REGISTERED
            ) from e
        result.phase = ImportPhase.REGISTERED

        yield "Attaching icon..."
        self._attach_icon(root, descriptor, result)

        result.phase = ImportPhase.DOCUMENTS
        if layout.docs_manifest(root).is_file():
            yield "Attaching documents..."
            self._attach_documents(root, descriptor, result)

        yield "Attaching sequences..."
        self._attach_sequences(root, descriptor, actor, result)

        yield "Attaching WSDL..."
        self._attach_wsdl(root, descriptor, result)

        yield "Attaching definition..."
        self._attach_definition(root, descriptor, result)

        result.phase = ImportPhase.ASSETS_ATTACHED
        result.phase = ImportPhase.DONE

    def _read_descriptor(self, root: Path) -> APIDescriptor:
        """Read and decode Meta-information/api.json."""
        api_path = layout.api_file(root)
        try:
            text = api_path.read_text(encoding='utf-8')
        except FileNotFoundError as e:
            logger.error(f"API metadata not found at {api_path}")
            raise MetadataParseError(
                f"Archive has no {layout.META_DIR}/{layout.API_FILE}", ImportPhase.METADATA_PARSED
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error while reading {api_path}: {e}")
            raise MetadataParseError(
                f"Failed to read API metadata: {e}", ImportPhase.METADATA_PARSED
            ) from e

        try:
            return decode_descriptor(text)
        except MetadataParseError as e:
            logger.error(f"Error in reading API definition: {e}")
            e.phase = ImportPhase.METADATA_PARSED
            raise

    def _update(self, result: ImportResult, descriptor: APIDescriptor,
                code: WarningCode, what: str) -> bool:
        """Push the descriptor back to the store; soft on failure."""
        try:
            self.store.update(result.api_id, descriptor)
        except CatalogError as e:
            message = f"Failed to update {what} reference of {descriptor}: {e}"
            logger.warning(message)
            result.warn(code, message)
            return False
        return True

    def _find_icon(self, root: Path) -> Optional[Path]:
        image_dir = layout.image_dir(root)
        if not image_dir.is_dir():
            return None
        allowed = set(layout.ICON_EXTENSIONS.values())
        for path in sorted(image_dir.iterdir()):
            if (path.is_file() and path.stem == layout.ICON_NAME
                    and path.suffix.lstrip('.').lower() in allowed):
                return path
        return None

    def _attach_icon(self, root: Path, descriptor: APIDescriptor, result: ImportResult) -> None:
        icon_path = self._find_icon(root)
        if icon_path is None:
            logger.debug(f"No icon in archive for {descriptor}")
            return

        media_type, _ = mimetypes.guess_type(icon_path.name)
        try:
            descriptor.thumbnail_url = self.store.attach_icon(
                result.api_id, icon_path.read_bytes(), media_type
            )
        except (CatalogError, OSError) as e:
            message = f"Failed to add icon to the API {descriptor}: {e}"
            logger.warning(message)
            result.warn(WarningCode.ICON_SKIPPED, message, icon_path.name)
            return

        if self._update(result, descriptor, WarningCode.ICON_SKIPPED, "thumbnail"):
            result.icon_attached = True
            logger.debug(f"Icon {icon_path.name} attached to {descriptor}")
        else:
            descriptor.thumbnail_url = None

    def _document_file(self, root: Path, document: DocumentDescriptor) -> Path:
        """Locate a FILE document's content inside the archive root."""
        if not document.file_path:
            raise DocumentImportError(
                f"FILE document '{document.name}' has no file path", ImportPhase.DOCUMENTS
            )
        path = layout.resolve_archive_path(root, document.file_path)
        resolved_root = root.resolve()
        if resolved_root not in path.resolve().parents:
            raise DocumentImportError(
                f"File path of document '{document.name}' leaves the archive: {document.file_path}",
                ImportPhase.DOCUMENTS,
            )
        return path

    def _attach_documents(self, root: Path, descriptor: APIDescriptor, result: ImportResult) -> None:
        """Register every documentation entry; any failure is fatal."""
        manifest = layout.docs_manifest(root)
        try:
            documents = decode_documents(manifest.read_text(encoding='utf-8'))
            for document in documents:
                if document.source_type is DocumentSourceType.INLINE:
                    self.store.attach_document(result.api_id, document, document.summary)
                elif document.source_type is DocumentSourceType.URL:
                    self.store.attach_document(result.api_id, document)
                elif document.source_type is DocumentSourceType.FILE:
                    content = self._document_file(root, document).read_bytes()
                    self.store.attach_document(result.api_id, document, content)
                else:
                    raise DocumentImportError(
                        f"Unknown source type of document '{document.name}'",
                        ImportPhase.DOCUMENTS,
                    )
                result.documents_attached += 1
                logger.debug(f"Document '{document.name}' attached to {descriptor}")
        except DocumentImportError:
            raise
        except (MetadataParseError, CatalogError, OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to add documentation to the API {descriptor}: {e}")
            raise DocumentImportError(
                f"Failed to add documentation to the API {descriptor}: {e}",
                ImportPhase.DOCUMENTS,
            ) from e

    def _sequence_source(self, folder: Path, name: Optional[str]) -> Optional[Path]:
        """Pick the sequence file of a direction folder."""
        if name:
            preferred = folder / f"{name}{layout.SEQUENCE_EXTENSION}"
            if preferred.is_file():
                return preferred
        for path in sorted(folder.glob(f"*{layout.SEQUENCE_EXTENSION}")):
            if path.is_file():
                return path
        return None

    def _attach_sequences(self, root: Path, descriptor: APIDescriptor,
                          actor: Actor, result: ImportResult) -> None:
        """
        Register archived sequences in the actor's tenant catalog.

        A sequence already registered under the same name is reused,
        never overwritten. A reference with neither an archived file
        nor a registered sequence is cleared.
        """
        changed = False
        catalog = None
        for direction in SequenceDirection:
            current = descriptor.sequence_ref(direction)
            folder = layout.sequence_dir(root, direction.value)
            source = self._sequence_source(folder, current) if folder.is_dir() else None

            try:
                if catalog is None:
                    catalog = self.store.sequences(actor.tenant_domain)

                if source is not None:
                    name = source.stem
                    if catalog.exists(direction, name):
                        logger.debug(f"{direction.value} sequence '{name}' already registered")
                    else:
                        catalog.put(Sequence(name=name, direction=direction,
                                             config=source.read_bytes()))
                        logger.debug(f"{direction.value} sequence '{name}' registered")
                    result.sequences_attached += 1
                    if current != name:
                        descriptor.set_sequence_ref(direction, name)
                        changed = True
                    continue

                if current and catalog.exists(direction, current):
                    continue
            except (CatalogError, OSError) as e:
                message = f"Failed to add {direction.value} sequence of {descriptor}: {e}"
            else:
                if not current:
                    continue
                message = (f"{direction.value} sequence '{current}' of {descriptor} "
                           f"is neither archived nor registered")

            logger.warning(message)
            result.warn(WarningCode.SEQUENCE_SKIPPED, message, current)
            if current:
                descriptor.set_sequence_ref(direction, None)
                changed = True

        if changed:
            self._update(result, descriptor, WarningCode.SEQUENCE_SKIPPED, "sequence")

    def _attach_wsdl(self, root: Path, descriptor: APIDescriptor, result: ImportResult) -> None:
        wsdl_path = layout.wsdl_file(root, descriptor.name, descriptor.version)
        if not wsdl_path.is_file():
            return

        try:
            descriptor.wsdl_url = self.store.attach_wsdl(result.api_id, wsdl_path.read_bytes())
        except (CatalogError, OSError) as e:
            message = f"Failed to add WSDL to the API {descriptor}: {e}"
            logger.warning(message)
            result.warn(WarningCode.WSDL_SKIPPED, message)
            return

        if self._update(result, descriptor, WarningCode.WSDL_SKIPPED, "WSDL"):
            result.wsdl_attached = True
            logger.debug(f"WSDL attached to {descriptor}")
        else:
            descriptor.wsdl_url = None

    def _attach_definition(self, root: Path, descriptor: APIDescriptor, result: ImportResult) -> None:
        definition_path = layout.definition_file(root)
        if not definition_path.is_file():
            return

        try:
            self.store.attach_definition(
                result.api_id, definition_path.read_text(encoding='utf-8')
            )
        except (CatalogError, OSError, UnicodeDecodeError) as e:
            message = f"Failed to add definition to the API {descriptor}: {e}"
            logger.warning(message)
            result.warn(WarningCode.DEFINITION_SKIPPED, message)
            return

        result.definition_attached = True
        logger.debug(f"Definition attached to {descriptor}")
