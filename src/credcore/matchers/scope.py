"""Credential visibility scopes."""

from enum import Enum


class CredentialsScope(Enum):
    """Visibility level attached to a credential.

    Members compare by identity; the value is the display name.
    """

    SYSTEM = "System (the service and its agents only)"
    GLOBAL = "Global (the service, its agents and all items)"
    USER = "User"
    NODE = "Node (this agent only)"

    @property
    def display_name(self) -> str:
        """Human readable name of the scope."""
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "CredentialsScope":
        """Look up a scope by its constant name.

        Accepts either the bare member name (``GLOBAL``) or a qualified name
        whose last segment is a member name (``pkg.CredentialsScope.GLOBAL``).

        Raises:
            KeyError: If no member has that name
        """
        return cls[name.rsplit(".", 1)[-1]]
