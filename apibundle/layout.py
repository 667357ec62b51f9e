"""
Archive layout for apibundle.

Every exported API is laid out under a single root directory
(``<api-name>-<version>`` on export) as:

    Meta-information/api.json            descriptor
    Meta-information/swagger.json        interface definition (optional)
    Image/icon.<ext>                     thumbnail (optional)
    Docs/docs.json                       documentation manifest (optional)
    Docs/<filename>                      one file per FILE-type document
    Sequences/<direction>-sequence/<name>.xml
    WSDL/<name>-<version>.wsdl           (optional)

The layout is fixed; importers locate everything relative to the
recovered root directory.
"""

from pathlib import Path
from typing import Optional

META_DIR = "Meta-information"
API_FILE = "api.json"
DEFINITION_FILE = "swagger.json"

IMAGE_DIR = "Image"
ICON_NAME = "icon"

DOCS_DIR = "Docs"
DOCS_MANIFEST = "docs.json"

SEQUENCES_DIR = "Sequences"
SEQUENCE_EXTENSION = ".xml"

WSDL_DIR = "WSDL"
WSDL_EXTENSION = ".wsdl"

# Name given to an uploaded archive inside the import workspace
UPLOAD_FILE_NAME = "APIArchive.zip"

# Media type -> icon file extension
ICON_EXTENSIONS = {
    "image/png": "png",
    "image/jpg": "jpg",
    "image/jpeg": "jpeg",
    "image/bmp": "bmp",
    "image/gif": "gif",
}


def archive_root_name(api_name: str, version: str) -> str:
    """Root directory name used when exporting an API."""
    return f"{api_name}-{version}"


def api_file(root: Path) -> Path:
    return root / META_DIR / API_FILE


def definition_file(root: Path) -> Path:
    return root / META_DIR / DEFINITION_FILE


def image_dir(root: Path) -> Path:
    return root / IMAGE_DIR


def icon_file(root: Path, extension: str) -> Path:
    return root / IMAGE_DIR / f"{ICON_NAME}.{extension}"


def docs_dir(root: Path) -> Path:
    return root / DOCS_DIR


def docs_manifest(root: Path) -> Path:
    return root / DOCS_DIR / DOCS_MANIFEST


def document_archive_path(filename: str) -> str:
    """Archive-relative path written into docs.json for FILE documents."""
    return f"/{DOCS_DIR}/{filename}"


def resolve_archive_path(root: Path, archive_path: str) -> Path:
    """Resolve an archive-relative path (``/Docs/x.pdf``) against root."""
    return root / archive_path.lstrip("/")


def sequence_dir(root: Path, direction_value: str) -> Path:
    return root / SEQUENCES_DIR / f"{direction_value}-sequence"


def sequence_file(root: Path, direction_value: str, name: str) -> Path:
    return sequence_dir(root, direction_value) / f"{name}{SEQUENCE_EXTENSION}"


def wsdl_file(root: Path, api_name: str, version: str) -> Path:
    return root / WSDL_DIR / f"{api_name}-{version}{WSDL_EXTENSION}"


def icon_extension(media_type: Optional[str]) -> Optional[str]:
    """Map a media type to an icon extension, or None if unsupported."""
    if media_type is None:
        return None
    return ICON_EXTENSIONS.get(media_type.lower())
