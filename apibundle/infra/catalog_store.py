"""
Catalog Store interfaces for apibundle.

The Catalog Store is the system of record for API definitions and
their assets. The pipeline only talks to it through the narrow
capabilities defined here, so any backend (a registry service, a
database, the bundled LocalCatalogStore) can be plugged in.

Stored resources are addressed by registry-relative references:

    apimgt/applicationdata/icons/<provider>/<name>/<version>/icon
    apimgt/applicationdata/provider/wsdls/<provider>--<name><version>.wsdl
    apimgt/applicationdata/provider/<provider>/<name>/<version>/documentation/files/<file>

Implementations raise CatalogError for any backend failure.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Set, Union

from ..domain import (
    Actor,
    APIDescriptor,
    APIIdentifier,
    DocumentDescriptor,
    Sequence,
    SequenceDirection,
)

RESOURCE_ROOT = "apimgt/applicationdata"


def icon_ref(identifier: APIIdentifier) -> str:
    """Reference of an API's thumbnail image."""
    return (f"{RESOURCE_ROOT}/icons/{identifier.provider_name}/"
            f"{identifier.api_name}/{identifier.version}/icon")


def wsdl_ref(identifier: APIIdentifier) -> str:
    """Reference of an API's WSDL."""
    return (f"{RESOURCE_ROOT}/provider/wsdls/{identifier.provider_name}--"
            f"{identifier.api_name}{identifier.version}.wsdl")


def document_ref(identifier: APIIdentifier, file_name: str) -> str:
    """Reference of a FILE-type document's content."""
    return (f"{RESOURCE_ROOT}/provider/{identifier.provider_name}/"
            f"{identifier.api_name}/{identifier.version}/documentation/files/{file_name}")


class ContentAccessor(ABC):
    """Read access to stored binary resources."""

    @abstractmethod
    def exists(self, ref: str) -> bool:
        """Check whether a resource exists."""

    @abstractmethod
    def read(self, ref: str) -> bytes:
        """
        Read a resource's content.

        Raises:
            CatalogError: If the resource is missing or unreadable
        """

    @abstractmethod
    def media_type(self, ref: str) -> Optional[str]:
        """Media type recorded for a resource, if any."""


class SequenceCatalog(ABC):
    """Tenant-scoped catalog of mediation sequences."""

    @abstractmethod
    def exists(self, direction: SequenceDirection, name: str) -> bool:
        """Check whether a sequence is registered."""

    @abstractmethod
    def get(self, direction: SequenceDirection, name: str) -> Sequence:
        """
        Resolve a sequence.

        Raises:
            CatalogError: If the sequence is not registered
        """

    @abstractmethod
    def put(self, sequence: Sequence) -> None:
        """Register (or replace) a sequence."""


class CatalogStore(ABC):
    """
    Capabilities the export/import pipeline needs from the system of record.

    Export side reads a registered API and its assets; import side
    registers a new API and attaches assets to it by id.
    """

    # Export side

    @property
    @abstractmethod
    def content(self) -> ContentAccessor:
        """Accessor for stored icons, WSDLs and document files."""

    @abstractmethod
    def get_api(self, identifier: APIIdentifier) -> APIDescriptor:
        """
        Load a registered API.

        Raises:
            CatalogError: If no API has this identity
        """

    @abstractmethod
    def list_documents(self, identifier: APIIdentifier) -> List[DocumentDescriptor]:
        """All documentation items of an API, in order."""

    @abstractmethod
    def get_definition(self, identifier: APIIdentifier) -> Optional[str]:
        """Interface definition (swagger) text, if one is stored."""

    @abstractmethod
    def sequences(self, tenant_domain: str) -> SequenceCatalog:
        """Sequence catalog of a tenant."""

    # Import side

    @abstractmethod
    def get_supported_tiers(self) -> Set[str]:
        """Tier names this environment offers."""

    @abstractmethod
    def register(self, descriptor: APIDescriptor, actor: Actor) -> str:
        """
        Register a new API.

        Returns:
            Id of the registered API

        Raises:
            CatalogError: If the identity already exists or a field is invalid
        """

    @abstractmethod
    def update(self, api_id: str, descriptor: APIDescriptor) -> None:
        """Replace the stored descriptor of a registered API."""

    @abstractmethod
    def attach_icon(self, api_id: str, content: bytes, media_type: Optional[str]) -> str:
        """
        Store an API's thumbnail.

        Returns:
            Thumbnail URL to record on the descriptor
        """

    @abstractmethod
    def attach_document(self, api_id: str, document: DocumentDescriptor,
                        content: Optional[Union[bytes, str]] = None) -> DocumentDescriptor:
        """
        Register a documentation item.

        INLINE documents pass their text as ``content``; FILE documents
        pass the file bytes, and the returned descriptor carries the
        store's ``file_path`` for them.
        """

    @abstractmethod
    def attach_wsdl(self, api_id: str, content: bytes) -> str:
        """
        Store an API's WSDL.

        Returns:
            WSDL URL to record on the descriptor
        """

    @abstractmethod
    def attach_definition(self, api_id: str, text: str) -> None:
        """Store an API's interface definition."""
