"""
Metadata codec for apibundle.

Serializes API descriptors (``Meta-information/api.json``) and
documentation manifests (``Docs/docs.json``) to pretty-printed JSON
and back. Decoding validates structure and identity; unknown extra
fields are ignored so newer exports stay readable.
"""

import json
import logging
from typing import List

from .domain import APIDescriptor, DocumentDescriptor
from .errors import MetadataParseError

logger = logging.getLogger(__name__)


def encode_descriptor(descriptor: APIDescriptor) -> str:
    """
    Encode a descriptor as pretty-printed JSON.

    Args:
        descriptor: Descriptor to encode

    Returns:
        JSON text (with trailing newline)
    """
    return json.dumps(descriptor.to_dict(), indent=2, ensure_ascii=False) + '\n'


def decode_descriptor(text: str) -> APIDescriptor:
    """
    Decode a descriptor from JSON text.

    Args:
        text: Contents of api.json

    Returns:
        Decoded APIDescriptor

    Raises:
        MetadataParseError: If the JSON is invalid, is not an object,
            lacks identity fields or holds invalid values
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MetadataParseError(f"Invalid API metadata JSON: {e}") from e

    if not isinstance(data, dict):
        raise MetadataParseError("API metadata must be a JSON object")

    identity = data.get('id')
    if not isinstance(identity, dict):
        raise MetadataParseError("API metadata is missing the 'id' block")

    try:
        return APIDescriptor.from_dict(data)
    except KeyError as e:
        raise MetadataParseError(f"API metadata is missing required field {e}") from e
    except (ValueError, TypeError) as e:
        raise MetadataParseError(f"Invalid API metadata: {e}") from e


def encode_documents(documents: List[DocumentDescriptor]) -> str:
    """Encode a documentation manifest as a pretty-printed JSON array."""
    return json.dumps(
        [doc.to_dict() for doc in documents], indent=2, ensure_ascii=False
    ) + '\n'


def decode_documents(text: str) -> List[DocumentDescriptor]:
    """
    Decode a documentation manifest.

    Raises:
        MetadataParseError: If the manifest is not a JSON array of
            valid document entries
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MetadataParseError(f"Invalid documentation manifest JSON: {e}") from e

    if not isinstance(data, list):
        raise MetadataParseError("Documentation manifest must be a JSON array")

    documents = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise MetadataParseError(f"Documentation entry {index} is not an object")
        try:
            documents.append(DocumentDescriptor.from_dict(entry))
        except KeyError as e:
            raise MetadataParseError(
                f"Documentation entry {index} is missing required field {e}"
            ) from e
        except ValueError as e:
            raise MetadataParseError(f"Documentation entry {index} is invalid: {e}") from e

    logger.debug(f"Decoded {len(documents)} documentation entries")
    return documents
