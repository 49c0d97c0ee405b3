"""Fetching user delegation keys from the storage service."""

from __future__ import annotations

import base64
import binascii
import logging
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

from .config import StorageConfig
from .constants import (
    CLOCK_SKEW,
    DELEGATION_KEY_LIFETIME,
    SIGNED_KEY_SERVICE,
    USER_DELEGATION_KEY_PATH,
)
from .contracts import BearerToken, DelegationKey
from .dates import az_iso_date, parse_wire_date, utcnow
from .errors import DelegationKeyError, TransportError
from .transports.base import BaseTransport, TransportRequest

logger = logging.getLogger(__name__)

# Response tag -> DelegationKey field, in document order.
REQUIRED_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("SignedOid", "signed_oid"),
    ("SignedTid", "signed_tid"),
    ("SignedStart", "signed_start"),
    ("SignedExpiry", "signed_expiry"),
    ("SignedVersion", "signed_version"),
    ("Value", "value"),
)


def key_window(now: datetime) -> Tuple[str, str]:
    """Return the (start, expiry) wire timestamps requested for a key."""
    return az_iso_date(now - CLOCK_SKEW), az_iso_date(now + DELEGATION_KEY_LIFETIME)


def build_key_info(start: str, expiry: str) -> str:
    key_info = ET.Element("KeyInfo")
    ET.SubElement(key_info, "Start").text = start
    ET.SubElement(key_info, "Expiry").text = expiry
    return '<?xml version="1.0" encoding="utf-8"?>' + ET.tostring(
        key_info, encoding="unicode"
    )


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children_text(root: ET.Element) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for child in root.iter():
        name = _local_name(child.tag)
        if name not in values and child.text is not None:
            values[name] = child.text.strip()
    return values


def parse_delegation_key(body: str) -> DelegationKey:
    """Parse a ``UserDelegationKey`` document.

    Raises:
        DelegationKeyError: the body is not XML, is a storage error document,
            or has a missing or malformed required field (named in ``field``).
    """
    try:
        root = ET.fromstring(body.lstrip("\ufeff"))
    except ET.ParseError as exc:
        raise DelegationKeyError(f"Delegation key response is not XML: {exc}") from exc

    values = _children_text(root)
    if _local_name(root.tag) == "Error":
        code = values.get("Code", "unknown")
        message = (values.get("Message") or "").split("\n", 1)[0]
        detail = f": {message}" if message else ""
        raise DelegationKeyError(f"Storage service returned {code}{detail}")

    fields = {}
    for tag, field in REQUIRED_FIELDS:
        text = values.get(tag)
        if not text:
            raise DelegationKeyError(
                f"Delegation key response is missing <{tag}>", field=tag
            )
        fields[field] = text

    for tag in ("SignedStart", "SignedExpiry"):
        if parse_wire_date(values[tag]) is None:
            raise DelegationKeyError(
                f"Delegation key <{tag}> is not a wire timestamp: {values[tag]!r}", field=tag
            )
    try:
        base64.b64decode(values["Value"], validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DelegationKeyError(
            "Delegation key <Value> is not valid base64", field="Value"
        ) from exc
    fields["signed_service"] = values.get("SignedService") or SIGNED_KEY_SERVICE
    return DelegationKey(**fields)


class DelegationKeyFetcher:
    """Exchanges a bearer token for a time-boxed user delegation key."""

    def __init__(
        self,
        config: StorageConfig,
        transport: BaseTransport,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.config = config
        self.transport = transport
        self.clock = clock or utcnow

    def build_request(self, token: BearerToken) -> TransportRequest:
        start, expiry = key_window(self.clock())
        body = build_key_info(start, expiry)
        return TransportRequest(
            host=self.config.get_blob_host(),
            path=USER_DELEGATION_KEY_PATH,
            method="POST",
            headers={
                "Authorization": token.authorization_header(),
                "Content-Type": "application/xml",
                "Accept": "application/xml",
                "x-ms-version": self.config.api_version,
                "Content-Length": str(len(body.encode("utf-8"))),
                "User-Agent": self.config.user_agent,
            },
            body=body,
        )

    def fetch(self, token: BearerToken) -> DelegationKey:
        request = self.build_request(token)
        try:
            resp = self.transport.send(request)
        except TransportError as exc:
            raise DelegationKeyError(f"Delegation key request failed: {exc}") from exc

        if not resp.ok and not resp.body.strip():
            raise DelegationKeyError(
                f"Delegation key request answered HTTP {resp.status_code} with no body"
            )
        if not resp.ok:
            logger.warning(f"Delegation key request answered HTTP {resp.status_code}")
        key = parse_delegation_key(resp.body)
        logger.info(
            f"Fetched delegation key for oid={key.signed_oid} "
            f"valid {key.signed_start}..{key.signed_expiry}"
        )
        return key
