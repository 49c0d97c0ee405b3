"""HTTPS transport backed by requests."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from ..errors import TransportError
from .base import BaseTransport, TransportRequest, TransportResponse

logger = logging.getLogger(__name__)


class HttpsTransport(BaseTransport):
    """Sends requests over HTTPS using a pooled ``requests.Session``."""

    def __init__(
        self, timeout: float = 30.0, session: Optional[requests.Session] = None
    ) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    @staticmethod
    def build_url(request: TransportRequest) -> str:
        return f"https://{request.host}:{request.port}{request.path}"

    def send(self, request: TransportRequest) -> TransportResponse:
        url = self.build_url(request)
        logger.debug(f"{request.method} https://{request.host}{request.path.split('?')[0]}")
        try:
            resp = self.session.request(
                request.method,
                url,
                headers=request.headers,
                data=request.body.encode("utf-8") if request.body else None,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Request to {request.host} failed: {exc}") from exc
        logger.debug(f"{request.host} answered {resp.status_code}")
        return TransportResponse(status_code=resp.status_code, body=resp.text)

    def close(self) -> None:
        self.session.close()
