"""OAuth2 client-credentials exchange against the identity provider."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional
from urllib.parse import urlencode

from ..config import StorageConfig
from ..contracts import BearerToken
from ..errors import TokenAcquisitionError, TransportError
from ..transports.base import BaseTransport, TransportRequest

logger = logging.getLogger(__name__)


class TokenAcquirer:
    def __init__(self, config: StorageConfig, transport: BaseTransport) -> None:
        self.config = config
        self.transport = transport

    def build_request(self) -> TransportRequest:
        body = urlencode(
            {
                "client_id": self.config.client_id,
                "scope": self.config.scope,
                "client_secret": self.config.client_secret.get_secret_value(),
                "grant_type": "client_credentials",
            }
        )
        return TransportRequest(
            host=self.config.login_host,
            path=f"/{self.config.tenant_id}/oauth2/v2.0/token",
            method="POST",
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Content-Length": str(len(body.encode("utf-8"))),
                "Accept": "*/*",
                "User-Agent": self.config.user_agent,
            },
            body=body,
        )

    def acquire(self) -> BearerToken:
        """Exchange the client credentials for a bearer token.

        Raises:
            TokenAcquisitionError: the request failed, the body is not a JSON
                object, or it carries no ``access_token``.
        """
        try:
            resp = self.transport.send(self.build_request())
        except TransportError as exc:
            raise TokenAcquisitionError(f"Token request failed: {exc}") from exc

        try:
            payload = json.loads(resp.body)
        except ValueError as exc:
            raise TokenAcquisitionError(
                f"Token response (HTTP {resp.status_code}) is not valid JSON"
            ) from exc
        if not isinstance(payload, dict):
            raise TokenAcquisitionError("Token response is not a JSON object")

        access_token = payload.get("access_token")
        if not access_token or not isinstance(access_token, str):
            reason = payload.get("error_description") or payload.get("error")
            detail = f": {reason}" if reason else ""
            raise TokenAcquisitionError(
                f"Token response (HTTP {resp.status_code}) has no access_token{detail}"
            )

        expires_in = payload.get("expires_in")
        logger.info(
            f"Acquired bearer token for client {self.config.client_id} "
            f"(expires_in={expires_in})"
        )
        return BearerToken(
            access_token=access_token,
            token_type=_parse_token_type(payload.get("token_type")),
            expires_in=_parse_expires_in(expires_in),
        )


def _parse_expires_in(value: Any) -> Optional[int]:
    # Some providers send expires_in as a string.
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _parse_token_type(value: Any) -> str:
    if isinstance(value, str) and value:
        return value
    return "Bearer"
