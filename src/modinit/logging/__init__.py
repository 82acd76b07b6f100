"""modinit logging — hexagonal logging port and structlog adapter."""

from modinit.logging.port import LoggingPort
from modinit.logging.structlog_adapter import StructlogAdapter

__all__ = ["LoggingPort", "StructlogAdapter"]
