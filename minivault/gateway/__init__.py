"""Chain gateway implementations."""

from minivault.gateway.evm import EvmGateway

__all__ = ["EvmGateway"]
