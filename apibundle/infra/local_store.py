"""
Local, file-backed Catalog Store for apibundle.

Keeps a catalog on disk so exports and imports can run end to end
without an external registry:

    <root>/catalog.json                       index (FileStore)
    <root>/resources/<ref>                    icons, WSDLs, document files
    <root>/sequences/<tenant>/<direction>/<name>.xml

The index holds these sections:
- apis: api id -> {"descriptor": {...}, "created_by": "..."}
- documents: api id -> [document, ...]
- definitions: api id -> swagger text
- media_types: resource ref -> media type
- permissions: resource ref -> {"visibility": ..., "roles": [...]}
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from ..domain import (
    Actor,
    APIDescriptor,
    APIIdentifier,
    DocumentDescriptor,
    DocumentSourceType,
    Sequence,
    SequenceDirection,
)
from ..errors import CatalogError
from .catalog_store import (
    CatalogStore,
    ContentAccessor,
    SequenceCatalog,
    document_ref,
    icon_ref,
    wsdl_ref,
)
from .file_store import FileStore

logger = logging.getLogger(__name__)

DEFAULT_TIERS = ("Bronze", "Silver", "Gold", "Unlimited")

# Prefix of URLs handed back for stored resources
RESOURCE_URL_PREFIX = "/registry/resource/_system/governance/"


class LocalContentAccessor(ContentAccessor):
    """Content accessor over ``<root>/resources``."""

    def __init__(self, resources_dir: Path, index: FileStore):
        self.resources_dir = resources_dir
        self._index = index

    def _path(self, ref: str) -> Path:
        parts = [p for p in ref.split('/') if p]
        if not parts or '..' in parts:
            raise CatalogError(f"Invalid resource reference: {ref!r}")
        return self.resources_dir.joinpath(*parts)

    def exists(self, ref: str) -> bool:
        return self._path(ref).is_file()

    def read(self, ref: str) -> bytes:
        path = self._path(ref)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise CatalogError(f"Resource not found: {ref}") from e
        except OSError as e:
            raise CatalogError(f"Error while reading resource {ref}: {e}") from e

    def media_type(self, ref: str) -> Optional[str]:
        return self._index.get_entry('media_types', ref)

    def write(self, ref: str, content: bytes, media_type: Optional[str] = None) -> None:
        path = self._path(ref)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            raise CatalogError(f"Error while storing resource {ref}: {e}") from e
        if media_type:
            self._index.set_entry('media_types', ref, media_type)


class LocalSequenceCatalog(SequenceCatalog):
    """Sequences of one tenant, stored as ``<direction>/<name>.xml``."""

    def __init__(self, tenant_dir: Path):
        self.tenant_dir = tenant_dir

    def _path(self, direction: SequenceDirection, name: str) -> Path:
        if not name or '/' in name or name in ('.', '..'):
            raise CatalogError(f"Invalid sequence name: {name!r}")
        return self.tenant_dir / direction.value / f"{name}.xml"

    def exists(self, direction: SequenceDirection, name: str) -> bool:
        return self._path(direction, name).is_file()

    def get(self, direction: SequenceDirection, name: str) -> Sequence:
        path = self._path(direction, name)
        try:
            return Sequence(name=name, direction=direction, config=path.read_bytes())
        except FileNotFoundError as e:
            raise CatalogError(
                f"Sequence '{name}' ({direction.value}) is not registered"
            ) from e
        except OSError as e:
            raise CatalogError(f"Error while reading sequence '{name}': {e}") from e

    def put(self, sequence: Sequence) -> None:
        path = self._path(sequence.direction, sequence.name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(sequence.config)
        except OSError as e:
            raise CatalogError(f"Error while storing sequence '{sequence.name}': {e}") from e


class LocalCatalogStore(CatalogStore):
    """
    File-backed Catalog Store.

    Example:
        store = LocalCatalogStore(Path("~/.apibundle/catalog"))
        store.add_api(descriptor)
        store.put_resource(icon_ref(descriptor.identifier), png_bytes, "image/png")
    """

    def __init__(self, root: Union[str, Path], supported_tiers: Optional[Iterable[str]] = None):
        """
        Initialize LocalCatalogStore.

        Args:
            root: Catalog directory (created if absent)
            supported_tiers: Tiers this environment offers
        """
        self.root = Path(root).expanduser()
        self._index = FileStore(self.root / 'catalog.json')
        self._content = LocalContentAccessor(self.root / 'resources', self._index)
        self._supported_tiers = set(supported_tiers if supported_tiers is not None else DEFAULT_TIERS)

    # Export side

    @property
    def content(self) -> LocalContentAccessor:
        return self._content

    def get_api(self, identifier: APIIdentifier) -> APIDescriptor:
        return self._load(identifier.key)

    def list_documents(self, identifier: APIIdentifier) -> List[DocumentDescriptor]:
        entries = self._index.get_entry('documents', identifier.key, [])
        return [DocumentDescriptor.from_dict(entry) for entry in entries]

    def get_definition(self, identifier: APIIdentifier) -> Optional[str]:
        return self._index.get_entry('definitions', identifier.key)

    def sequences(self, tenant_domain: str) -> LocalSequenceCatalog:
        if not tenant_domain or '/' in tenant_domain:
            raise CatalogError(f"Invalid tenant domain: {tenant_domain!r}")
        return LocalSequenceCatalog(self.root / 'sequences' / tenant_domain)

    # Import side

    def get_supported_tiers(self) -> Set[str]:
        return set(self._supported_tiers)

    def register(self, descriptor: APIDescriptor, actor: Actor) -> str:
        identifier = descriptor.identifier
        if not (identifier.provider_name and identifier.api_name and identifier.version):
            raise CatalogError(f"API identity has an empty field: {identifier.to_dict()}")

        api_id = identifier.key
        if self._index.has_entry('apis', api_id):
            raise CatalogError(f"API already exists: {identifier}")

        unsupported = descriptor.available_tiers - self._supported_tiers
        if unsupported:
            raise CatalogError(f"Unsupported tiers: {', '.join(sorted(unsupported))}")

        self._insert(api_id, descriptor, created_by=actor.username)
        logger.debug(f"Registered API {descriptor.identifier} as {api_id}")
        return api_id

    def update(self, api_id: str, descriptor: APIDescriptor) -> None:
        entry = self._entry(api_id)
        if descriptor.identifier.key != api_id:
            raise CatalogError(f"Descriptor identity does not match API id {api_id}")
        self._save(api_id, descriptor, created_by=entry.get('created_by'))

    def attach_icon(self, api_id: str, content: bytes, media_type: Optional[str]) -> str:
        ref = icon_ref(self._load(api_id).identifier)
        self._content.write(ref, content, media_type)
        return RESOURCE_URL_PREFIX + ref

    def attach_document(self, api_id: str, document: DocumentDescriptor,
                        content: Optional[Union[bytes, str]] = None) -> DocumentDescriptor:
        descriptor = self._load(api_id)
        documents = self._index.get_entry('documents', api_id, [])
        if any(entry.get('name') == document.name for entry in documents):
            raise CatalogError(f"Document '{document.name}' already exists for {descriptor}")

        stored = replace(document)
        if document.source_type is DocumentSourceType.FILE:
            if not isinstance(content, bytes) or not document.file_name:
                raise CatalogError(f"FILE document '{document.name}' requires file content")
            ref = document_ref(descriptor.identifier, document.file_name)
            self._content.write(ref, content)
            self._index.set_entry('permissions', ref, {
                'visibility': descriptor.visibility,
                'roles': list(descriptor.visible_roles),
            })
            stored.file_path = ref
        elif document.source_type is DocumentSourceType.INLINE:
            if content is not None:
                stored.summary = content if isinstance(content, str) else content.decode('utf-8')
        elif document.source_type is DocumentSourceType.URL:
            pass
        else:
            raise CatalogError(f"Unknown document source type: {document.source_type!r}")

        def append(entries):
            if any(entry.get('name') == stored.name for entry in entries):
                raise CatalogError(f"Document '{stored.name}' already exists for {descriptor}")
            return entries + [stored.to_dict()]

        self._index.update_entry('documents', api_id, append, default=[])
        return stored

    def attach_wsdl(self, api_id: str, content: bytes) -> str:
        ref = wsdl_ref(self._load(api_id).identifier)
        self._content.write(ref, content, "application/wsdl+xml")
        return RESOURCE_URL_PREFIX + ref

    def attach_definition(self, api_id: str, text: str) -> None:
        self._entry(api_id)
        self._index.set_entry('definitions', api_id, text)

    # Seeding helpers

    def add_api(self, descriptor: APIDescriptor, created_by: str = "admin") -> str:
        """Register an API directly, bypassing tier validation."""
        api_id = descriptor.identifier.key
        self._insert(api_id, descriptor, created_by=created_by)
        return api_id

    def put_resource(self, ref: str, content: bytes, media_type: Optional[str] = None) -> None:
        """Store a raw resource (icon, WSDL, document file) by reference."""
        self._content.write(ref, content, media_type)

    def add_document(self, identifier: APIIdentifier, document: DocumentDescriptor,
                     content: Optional[bytes] = None) -> DocumentDescriptor:
        """Add a document; FILE content is stored under the document's reference."""
        return self.attach_document(identifier.key, document, content)

    def set_definition(self, identifier: APIIdentifier, text: str) -> None:
        self.attach_definition(identifier.key, text)

    def permissions(self, ref: str) -> Optional[dict]:
        """Permissions recorded for a stored resource."""
        return self._index.get_entry('permissions', ref)

    def created_by(self, api_id: str) -> Optional[str]:
        return self._entry(api_id).get('created_by')

    # Internals

    def _entry(self, api_id: str) -> dict:
        entry = self._index.get_entry('apis', api_id)
        if entry is None:
            raise CatalogError(f"API not found: {api_id}")
        return entry

    def _load(self, api_id: str) -> APIDescriptor:
        try:
            return APIDescriptor.from_dict(self._entry(api_id)['descriptor'])
        except (KeyError, ValueError, TypeError) as e:
            raise CatalogError(f"Stored API {api_id} is corrupt: {e}") from e

    def _insert(self, api_id: str, descriptor: APIDescriptor, created_by: Optional[str]) -> None:
        inserted = self._index.insert_entry('apis', api_id, {
            'descriptor': descriptor.to_dict(),
            'created_by': created_by,
        })
        if not inserted:
            raise CatalogError(f"API already exists: {descriptor.identifier}")

    def _save(self, api_id: str, descriptor: APIDescriptor, created_by: Optional[str]) -> None:
        self._index.set_entry('apis', api_id, {
            'descriptor': descriptor.to_dict(),
            'created_by': created_by,
        })
