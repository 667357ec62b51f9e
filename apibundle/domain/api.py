"""
API descriptor domain objects for apibundle.

APIDescriptor is the unit of export and import. Its identity
(provider, name, version) is a frozen APIIdentifier; only lifecycle
status, tiers and asset references change while an API travels
through the pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List, Set

from .sequence import SequenceDirection


class APIStatus(Enum):
    """Lifecycle status of an API."""
    CREATED = "CREATED"
    PROTOTYPED = "PROTOTYPED"
    PUBLISHED = "PUBLISHED"
    DEPRECATED = "DEPRECATED"
    RETIRED = "RETIRED"
    BLOCKED = "BLOCKED"


@dataclass(frozen=True)
class APIIdentifier:
    """Globally unique identity of an API."""
    provider_name: str
    api_name: str
    version: str

    @property
    def key(self) -> str:
        """Stable string key (``provider--name--version``)."""
        return f"{self.provider_name}--{self.api_name}--{self.version}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'provider_name': self.provider_name,
            'api_name': self.api_name,
            'version': self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'APIIdentifier':
        """
        Build an identifier from its serialized form.

        Raises:
            KeyError: If an identity field is missing
            ValueError: If an identity field is empty or not a string
        """
        values = {}
        for name in ('provider_name', 'api_name', 'version'):
            value = data[name]
            if not isinstance(value, str) or not value:
                raise ValueError(f"Identity field '{name}' must be a non-empty string")
            values[name] = value
        return cls(**values)

    def __str__(self) -> str:
        return f"{self.api_name}-{self.version} ({self.provider_name})"


@dataclass
class APIDescriptor:
    """
    Structured record describing one API.

    The identifier is frozen, so identity fields cannot be reassigned
    individually. ``endpoint_config`` is opaque and carried through
    untouched.

    Example:
        api = APIDescriptor(
            identifier=APIIdentifier("acme", "Weather", "1.0"),
            available_tiers={"Gold", "Bronze"},
            in_sequence="log_in",
        )
    """

    identifier: APIIdentifier
    status: APIStatus = APIStatus.CREATED
    available_tiers: Set[str] = field(default_factory=set)
    endpoint_config: Optional[Dict[str, Any]] = None

    # Sequence references by name
    in_sequence: Optional[str] = None
    out_sequence: Optional[str] = None
    fault_sequence: Optional[str] = None

    # Identity-dependent asset references
    wsdl_url: Optional[str] = None
    thumbnail_url: Optional[str] = None

    visibility: str = "public"
    visible_roles: List[str] = field(default_factory=list)

    # Pass-through attributes
    context: Optional[str] = None
    description: Optional[str] = None
    transports: List[str] = field(default_factory=lambda: ["http", "https"])
    is_default_version: bool = False

    @property
    def name(self) -> str:
        return self.identifier.api_name

    @property
    def version(self) -> str:
        return self.identifier.version

    @property
    def provider_name(self) -> str:
        return self.identifier.provider_name

    def sequence_ref(self, direction: SequenceDirection) -> Optional[str]:
        """Get the sequence name referenced for a direction."""
        if direction is SequenceDirection.IN:
            return self.in_sequence
        elif direction is SequenceDirection.OUT:
            return self.out_sequence
        elif direction is SequenceDirection.FAULT:
            return self.fault_sequence
        raise ValueError(f"Unknown sequence direction: {direction!r}")

    def set_sequence_ref(self, direction: SequenceDirection, name: Optional[str]) -> None:
        """Set (or clear) the sequence name referenced for a direction."""
        if direction is SequenceDirection.IN:
            self.in_sequence = name
        elif direction is SequenceDirection.OUT:
            self.out_sequence = name
        elif direction is SequenceDirection.FAULT:
            self.fault_sequence = name
        else:
            raise ValueError(f"Unknown sequence direction: {direction!r}")

    def remove_tiers(self, tiers: Set[str]) -> None:
        """Drop the given tiers from the available set."""
        self.available_tiers = self.available_tiers - set(tiers)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Every attribute is present, including empty collections and
        unset references, so the document is self-describing.
        """
        return {
            'id': self.identifier.to_dict(),
            'status': self.status.value,
            'available_tiers': sorted(self.available_tiers),
            'endpoint_config': self.endpoint_config,
            'in_sequence': self.in_sequence,
            'out_sequence': self.out_sequence,
            'fault_sequence': self.fault_sequence,
            'wsdl_url': self.wsdl_url,
            'thumbnail_url': self.thumbnail_url,
            'visibility': self.visibility,
            'visible_roles': list(self.visible_roles),
            'context': self.context,
            'description': self.description,
            'transports': list(self.transports),
            'is_default_version': self.is_default_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'APIDescriptor':
        """
        Build a descriptor from its serialized form.

        Unknown keys are ignored. Missing optional keys take defaults.

        Raises:
            KeyError: If the identity block is missing
            ValueError: If a field has an invalid value
            TypeError: If a field has the wrong shape
        """
        identifier = APIIdentifier.from_dict(data['id'])

        status = data.get('status') or APIStatus.CREATED.value
        tiers = data.get('available_tiers') or []
        if not isinstance(tiers, list):
            raise TypeError("'available_tiers' must be a list")

        roles = data.get('visible_roles') or []
        transports = data.get('transports')
        if transports is None:
            transports = ["http", "https"]

        return cls(
            identifier=identifier,
            status=APIStatus(status),
            available_tiers={str(t) for t in tiers},
            endpoint_config=data.get('endpoint_config'),
            in_sequence=data.get('in_sequence') or None,
            out_sequence=data.get('out_sequence') or None,
            fault_sequence=data.get('fault_sequence') or None,
            wsdl_url=data.get('wsdl_url'),
            thumbnail_url=data.get('thumbnail_url'),
            visibility=data.get('visibility') or "public",
            visible_roles=list(roles),
            context=data.get('context'),
            description=data.get('description'),
            transports=list(transports),
            is_default_version=bool(data.get('is_default_version', False)),
        )

    def __str__(self) -> str:
        return str(self.identifier)
