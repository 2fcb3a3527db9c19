"""Abstract collaborator interfaces."""

from minivault.interfaces.backend import BackupBackend
from minivault.interfaces.gateway import ChainGateway
from minivault.interfaces.identity import IdentityProvider

__all__ = ["BackupBackend", "ChainGateway", "IdentityProvider"]
