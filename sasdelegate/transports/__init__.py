"""Transport factory and initialization."""

from __future__ import annotations

import os
from typing import Optional

from ..config import SasDelegateConfig, load_config
from .base import BaseTransport, TransportRequest, TransportResponse
from .inmemory import InMemoryTransport


def get_transport(
    backend: Optional[str] = None, config: Optional[SasDelegateConfig] = None
) -> BaseTransport:
    """Factory function to get the configured transport."""

    config = config or load_config()
    backend = (
        backend
        or os.getenv("SASDELEGATE_TRANSPORT")
        or config.transport.backend
    ).lower()

    if backend == "inmemory":
        return InMemoryTransport()
    elif backend == "https":
        from .https import HttpsTransport

        return HttpsTransport(timeout=config.transport.timeout)
    else:
        raise ValueError(f"Unsupported transport backend: {backend}")


__all__ = [
    "BaseTransport",
    "InMemoryTransport",
    "TransportRequest",
    "TransportResponse",
    "get_transport",
]
