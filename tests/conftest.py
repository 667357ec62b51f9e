"""
Shared fixtures for apibundle tests.

The "Weather" API of provider "acme" is the running example: two
tiers, an in-sequence, an icon, one FILE and one INLINE document, a
WSDL and a swagger definition.
"""

from pathlib import Path
from typing import Dict, Union

import pytest

from apibundle.config import get_default_config
from apibundle.domain import (
    APIDescriptor,
    APIIdentifier,
    DocumentDescriptor,
    DocumentSourceType,
    Sequence,
    SequenceDirection,
)
from apibundle.infra.archiver import compress
from apibundle.infra.catalog_store import icon_ref, wsdl_ref
from apibundle.infra.local_store import LocalCatalogStore
from apibundle.metadata import encode_descriptor

WEATHER = APIIdentifier(provider_name="acme", api_name="Weather", version="1.0")

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-icon"
PDF_BYTES = b"%PDF-1.4 weather guide"
WSDL_BYTES = b"<definitions name=\"Weather\"/>"
LOG_IN_BYTES = b"<sequence name=\"log_in\"><log level=\"full\"/></sequence>"
SWAGGER_TEXT = '{"swagger": "2.0", "info": {"title": "Weather"}}'


def weather_descriptor(**overrides) -> APIDescriptor:
    """Weather API descriptor as registered in the source catalog."""
    fields = dict(
        identifier=WEATHER,
        available_tiers={"Gold", "Bronze"},
        endpoint_config={"production_endpoints": {"url": "https://weather.example.com"}},
        in_sequence="log_in",
        wsdl_url="/registry/resource/_system/governance/weather.wsdl",
        context="/weather",
        description="Forecasts",
    )
    fields.update(overrides)
    return APIDescriptor(**fields)


@pytest.fixture
def config(tmp_path):
    """Default configuration with workspaces under tmp_path."""
    config = get_default_config()
    config['workspace']['base_dir'] = str(tmp_path / 'work')
    config['catalog']['path'] = str(tmp_path / 'catalog')
    return config


@pytest.fixture
def source_store(tmp_path):
    """Empty source catalog."""
    return LocalCatalogStore(tmp_path / 'source')


@pytest.fixture
def target_store(tmp_path):
    """Empty target catalog supporting the default tiers."""
    return LocalCatalogStore(tmp_path / 'target')


@pytest.fixture
def weather_store(source_store):
    """Source catalog holding the fully populated Weather API."""
    source_store.add_api(weather_descriptor())
    source_store.put_resource(icon_ref(WEATHER), PNG_BYTES, "image/png")
    source_store.put_resource(wsdl_ref(WEATHER), WSDL_BYTES, "application/wsdl+xml")
    source_store.add_document(
        WEATHER,
        DocumentDescriptor(name="Guide", source_type=DocumentSourceType.FILE,
                           file_path="guide.pdf"),
        PDF_BYTES,
    )
    source_store.add_document(
        WEATHER,
        DocumentDescriptor(name="Overview", source_type=DocumentSourceType.INLINE,
                           summary="Weather forecasts for everyone"),
    )
    source_store.set_definition(WEATHER, SWAGGER_TEXT)
    source_store.sequences("carbon.super").put(
        Sequence(name="log_in", direction=SequenceDirection.IN, config=LOG_IN_BYTES)
    )
    return source_store


def build_archive(base: Path, files: Dict[str, Union[str, bytes]],
                  root: str = "Weather-1.0") -> Path:
    """Lay out files under base/<root> and compress them."""
    root_dir = base / root
    for relative, content in files.items():
        path = root_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode('utf-8')
        path.write_bytes(content)
    return compress(root_dir)


@pytest.fixture
def make_archive(tmp_path):
    """Factory building an archive from a {relative path: content} mapping."""
    counter = {'n': 0}

    def factory(files, root="Weather-1.0"):
        counter['n'] += 1
        return build_archive(tmp_path / f"archive-src-{counter['n']}", files, root)

    return factory


def api_json(**overrides) -> str:
    """api.json text for the Weather API."""
    return encode_descriptor(weather_descriptor(**overrides))
