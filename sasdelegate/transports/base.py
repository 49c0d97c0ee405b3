"""Base transport interface for the delegation pipeline."""

from __future__ import annotations

import abc
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

from ..constants import HTTPS_PORT


class TransportRequest(BaseModel):
    """One HTTP(S) request as seen by the pipeline stages."""

    model_config = ConfigDict(frozen=True)

    host: str
    path: str
    method: str = "POST"
    port: int = HTTPS_PORT
    headers: Dict[str, str] = Field(default_factory=dict)
    body: str = ""


class TransportResponse(BaseModel):
    """Status code and decoded body of a completed request."""

    model_config = ConfigDict(frozen=True)

    status_code: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class BaseTransport(metaclass=abc.ABCMeta):
    """Abstract transport performing a single request.

    TLS, connection handling, cancellation and timeouts belong to the
    implementation; stages only see ``TransportResponse`` or ``TransportError``.
    """

    @abc.abstractmethod
    def send(self, request: TransportRequest) -> TransportResponse:
        """Perform ``request`` and return its response."""
        raise NotImplementedError

    def close(self) -> None:
        """Release held connections (no-op by default)."""
        pass
