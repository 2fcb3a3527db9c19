"""Protocol for host-shell identity providers."""

from typing import Protocol, runtime_checkable

from minivault.models import HostIdentity


@runtime_checkable
class IdentityProvider(Protocol):
    """Supplies the ambient user identity of an embedding shell.

    Read once when a session is created and never again.
    """

    def get_identity(self) -> HostIdentity | None:
        """Return the host user, or None when not running inside a shell."""
        ...
