"""
High-level Python API for apibundle.

Provides a small facade over the export and import services.

Example:
    import apibundle

    # Create instance (uses config defaults)
    bundle = apibundle.APIBundle()

    # Or with an explicit store
    bundle = apibundle.APIBundle(store=LocalCatalogStore("/srv/catalog"))

    # Export an API to an archive
    result = bundle.export_api("Weather", "1.0", "acme")
    print(result.archive_path)

    # Import it somewhere else
    result = other.import_api(result.archive_path)
    print(result.api_id, [str(w) for w in result.warnings])

    # Low-level access to services
    bundle.export_service
    bundle.import_service
"""

from typing import BinaryIO, Generator, Optional, Dict, Any, TypeVar, Union
from pathlib import Path
import logging

from .domain import Actor, APIIdentifier, ExportResult, ImportResult
from .errors import InvalidRequestError
from .infra import CatalogStore, LocalCatalogStore
from .services import ExportService, ImportService
from .config import load_config

logger = logging.getLogger(__name__)

T = TypeVar('T')


def run_to_completion(steps: Generator[str, None, T]) -> T:
    """Drive a service generator, logging its progress, and return its result."""
    while True:
        try:
            message = next(steps)
        except StopIteration as stop:
            return stop.value
        logger.debug(message)


def create_store(config: Dict[str, Any]) -> LocalCatalogStore:
    """Build the local catalog store described by the ``catalog`` config section."""
    catalog = config.get('catalog', {})
    return LocalCatalogStore(
        catalog.get('path', '~/.apibundle/catalog'),
        supported_tiers=catalog.get('supported_tiers'),
    )


class APIBundle:
    """
    High-level API for apibundle.

    Example:
        bundle = APIBundle()
        result = bundle.export_api("Weather", "1.0", "acme", Actor("admin"))
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        store: Optional[CatalogStore] = None
    ):
        """
        Initialize APIBundle.

        Args:
            config: Full config dict (loads the config file if None)
            store: Catalog Store (default: LocalCatalogStore at catalog.path)
        """
        self._config = config or load_config()
        self._store = store or create_store(self._config)
        self._export_service = ExportService(self._store, config=self._config)
        self._import_service = ImportService(self._store, config=self._config)

    @property
    def config(self) -> Dict[str, Any]:
        return self._config

    @property
    def store(self) -> CatalogStore:
        return self._store

    @property
    def export_service(self) -> ExportService:
        return self._export_service

    @property
    def import_service(self) -> ImportService:
        return self._import_service

    def default_actor(self) -> Actor:
        """Actor from the ``actor.username`` config setting."""
        return Actor(self._config.get('actor', {}).get('username') or 'admin')

    def export_api(
        self,
        name: Optional[str],
        version: Optional[str],
        provider: Optional[str],
        actor: Optional[Actor] = None
    ) -> ExportResult:
        """
        Export one API to an archive.

        Raises:
            InvalidRequestError: If name, version or provider is missing
            APINotFoundError: If the API is not in the store
        """
        missing = [label for label, value in
                   (('name', name), ('version', version), ('provider', provider))
                   if not value]
        if missing:
            raise InvalidRequestError(
                f"Invalid API information: missing {', '.join(missing)}"
            )

        identifier = APIIdentifier(provider_name=provider, api_name=name, version=version)
        return run_to_completion(
            self._export_service.export(identifier, actor or self.default_actor())
        )

    def import_api(
        self,
        archive: Union[str, Path, BinaryIO],
        actor: Optional[Actor] = None
    ) -> ImportResult:
        """
        Import an API from an archive path or binary stream.

        Raises:
            InvalidRequestError: If no archive is given
        """
        if archive is None or archive == "":
            raise InvalidRequestError("No archive given to import")
        return run_to_completion(
            self._import_service.import_archive(archive, actor or self.default_actor())
        )
