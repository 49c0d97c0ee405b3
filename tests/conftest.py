import json
from datetime import datetime, timezone

import pytest

from sasdelegate.config import StorageConfig
from sasdelegate.contracts import DelegationKey
from sasdelegate.transports.inmemory import InMemoryTransport

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
FIXED_OBJECT_ID = "0f8fad5b-d9cb-469f-a165-70867728950e"
TENANT = "11111111-2222-3333-4444-555555555555"
TOKEN_PATH = f"/{TENANT}/oauth2/v2.0/token"
KEY_PATH = "/?restype=service&comp=userdelegationkey"
BLOB_HOST = "myaccount.blob.core.windows.net"

KEY_XML = """<?xml version="1.0" encoding="utf-8"?>
<UserDelegationKey>
  <SignedOid>abc</SignedOid>
  <SignedTid>def</SignedTid>
  <SignedStart>2024-01-01T00:00:00Z</SignedStart>
  <SignedExpiry>2024-01-03T00:00:00Z</SignedExpiry>
  <SignedService>b</SignedService>
  <SignedVersion>2019-12-12</SignedVersion>
  <Value>AAAAAAAAAAAAAAAAAAAAAA==</Value>
</UserDelegationKey>"""


@pytest.fixture
def storage_config() -> StorageConfig:
    return StorageConfig(
        tenant_id=TENANT,
        client_id="client-123",
        client_secret="s3cr3t",
        account="myaccount",
        container="receive",
    )


@pytest.fixture
def scenario_key() -> DelegationKey:
    return DelegationKey(
        signed_oid="abc",
        signed_tid="def",
        signed_start="2024-01-01T00:00:00Z",
        signed_expiry="2024-01-03T00:00:00Z",
        signed_version="2019-12-12",
        value="AAAAAAAAAAAAAAAAAAAAAA==",
    )


@pytest.fixture
def transport() -> InMemoryTransport:
    transport = InMemoryTransport()
    transport.add_response(
        "POST",
        "login.microsoftonline.com",
        TOKEN_PATH,
        json.dumps({"token_type": "Bearer", "expires_in": 3599, "access_token": "tok-xyz"}),
    )
    transport.add_response("POST", BLOB_HOST, KEY_PATH, KEY_XML)
    return transport


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fixed_object_id() -> str:
    return FIXED_OBJECT_ID


@pytest.fixture
def key_xml() -> str:
    return KEY_XML
