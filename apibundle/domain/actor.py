"""
Actor domain object for apibundle.

The actor is the authenticated user an export or import runs on
behalf of. It is passed explicitly to every service call so that
concurrent operations for different actors never share state.
"""

from dataclasses import dataclass

SUPER_TENANT_DOMAIN = "carbon.super"


@dataclass(frozen=True)
class Actor:
    """User performing an operation."""
    username: str

    @property
    def tenant_domain(self) -> str:
        """
        Tenant the actor belongs to.

        ``alice@example.com`` belongs to ``example.com``; a username
        without a domain belongs to the super tenant.
        """
        if '@' in self.username:
            domain = self.username.rsplit('@', 1)[1]
            if domain:
                return domain
        return SUPER_TENANT_DOMAIN

    def __str__(self) -> str:
        return self.username
