"""In-memory transport for testing."""

from __future__ import annotations

from typing import Dict, List, Tuple

from ..errors import TransportError
from .base import BaseTransport, TransportRequest, TransportResponse


class InMemoryTransport(BaseTransport):
    """Replays canned responses and records every request sent."""

    def __init__(self) -> None:
        self._responses: Dict[Tuple[str, str, str], TransportResponse] = {}
        self.requests: List[TransportRequest] = []

    def add_response(
        self, method: str, host: str, path: str, body: str, status_code: int = 200
    ) -> None:
        """Register the response returned for ``method host path``."""
        key = (method.upper(), host, path)
        self._responses[key] = TransportResponse(status_code=status_code, body=body)

    def send(self, request: TransportRequest) -> TransportResponse:
        self.requests.append(request)
        key = (request.method.upper(), request.host, request.path)
        try:
            return self._responses[key]
        except KeyError:
            raise TransportError(
                f"No response registered for {request.method} {request.host}{request.path}"
            ) from None
