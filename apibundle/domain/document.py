"""
Documentation domain objects for apibundle.

A DocumentDescriptor is one documentation item attached to an API.
Which fields carry meaning depends on the source type:

- INLINE: ``summary`` holds the inline content
- URL: ``source_url`` points at the external document
- FILE: ``file_path`` addresses the stored file (registry path in a
  catalog, ``/Docs/<filename>`` inside an archive)

Fields belonging to another source type are dropped in both
serialization directions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any


class DocumentSourceType(Enum):
    """Where a document's content lives."""
    INLINE = "INLINE"
    URL = "URL"
    FILE = "FILE"


@dataclass
class DocumentDescriptor:
    """One documentation item of an API."""
    name: str
    source_type: DocumentSourceType
    doc_type: str = "HOWTO"
    visibility: str = "API_LEVEL"
    summary: Optional[str] = None
    source_url: Optional[str] = None
    file_path: Optional[str] = None

    def __post_init__(self):
        self._drop_irrelevant_fields()

    def _drop_irrelevant_fields(self) -> None:
        if self.source_type is DocumentSourceType.INLINE:
            self.source_url = None
            self.file_path = None
        elif self.source_type is DocumentSourceType.URL:
            self.summary = None
            self.file_path = None
        elif self.source_type is DocumentSourceType.FILE:
            self.summary = None
            self.source_url = None
        else:
            raise ValueError(f"Unknown document source type: {self.source_type!r}")

    @property
    def file_name(self) -> Optional[str]:
        """Last path segment of ``file_path`` (FILE documents only)."""
        if not self.file_path:
            return None
        return self.file_path.rstrip("/").rsplit("/", 1)[-1]

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'name': self.name,
            'source_type': self.source_type.value,
            'doc_type': self.doc_type,
            'visibility': self.visibility,
        }
        if self.source_type is DocumentSourceType.INLINE:
            result['summary'] = self.summary
        elif self.source_type is DocumentSourceType.URL:
            result['source_url'] = self.source_url
        elif self.source_type is DocumentSourceType.FILE:
            result['file_path'] = self.file_path
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DocumentDescriptor':
        """
        Build a document from its serialized form.

        Raises:
            KeyError: If ``name`` or ``source_type`` is missing
            ValueError: If ``source_type`` is not a known variant
        """
        source_type = DocumentSourceType(data['source_type'])
        return cls(
            name=data['name'],
            source_type=source_type,
            doc_type=data.get('doc_type') or "HOWTO",
            visibility=data.get('visibility') or "API_LEVEL",
            summary=data.get('summary'),
            source_url=data.get('source_url'),
            file_path=data.get('file_path'),
        )

    def __repr__(self) -> str:
        return f"DocumentDescriptor(name={self.name!r}, source_type={self.source_type.value!r})"
