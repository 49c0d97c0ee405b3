"""Tests for user delegation SAS construction."""

import logging
import uuid
from datetime import timedelta
from urllib.parse import parse_qsl, unquote, urlsplit

import pytest

from sasdelegate.errors import SigningError
from sasdelegate.signing import SasSigner, blob_path, build_query_string

# HMAC-SHA256 reference values computed independently (openssl) over the
# exact field order for the fixed key, object id and now in conftest.py.
GOLDEN_2019_12_12 = "X2EdaLmDXIbdeDPAvDS1aeTpmPVhkHJyR6kOHdkSHPA="
GOLDEN_2020_02_10 = "fIl1odhi298aCZRbhVxnXigA+6c9k9yC7AHvLwP4jIY="
GOLDEN_2020_12_06 = "11XOyg5LtFBkboTooNSlujVuio3nsq7jSn7+ODRTVHE="

RESOURCE = "/blob/myaccount/receive/0/0f/0f8fad5b-d9cb-469f-a165-70867728950e"


def _signer(config, now, object_id):
    return SasSigner(config, clock=lambda: now, id_factory=lambda: object_id)


def test_string_to_sign_layout(storage_config, scenario_key, fixed_now, fixed_object_id):
    signer = _signer(storage_config, fixed_now, fixed_object_id)

    lines = signer.string_to_sign(scenario_key, fixed_object_id, fixed_now).split("\n")

    assert lines == [
        "wt",
        "2024-01-01T11:45:00Z",
        "2024-01-02T00:00:00Z",
        RESOURCE,
        "abc",
        "def",
        "2024-01-01T00:00:00Z",
        "2024-01-03T00:00:00Z",
        "b",
        "2019-12-12",
        "",  # signed IP
        "https",
        "2019-12-12",
        "b",
        "",  # snapshot time
        "",
        "",
        "",
        "",
        "",
    ]


def test_golden_signature(storage_config, scenario_key, fixed_now, fixed_object_id):
    signer = _signer(storage_config, fixed_now, fixed_object_id)
    string_to_sign = signer.string_to_sign(scenario_key, fixed_object_id, fixed_now)

    assert signer.signature(scenario_key, string_to_sign) == GOLDEN_2019_12_12

    signed = signer.sign(scenario_key)
    assert signed.object_id == fixed_object_id
    assert signed.url.endswith("&sig=X2EdaLmDXIbdeDPAvDS1aeTpmPVhkHJyR6kOHdkSHPA%3D")


@pytest.mark.parametrize(
    "version,line_count,golden",
    [("2020-02-10", 23, GOLDEN_2020_02_10), ("2020-12-06", 24, GOLDEN_2020_12_06)],
)
def test_newer_versions_add_placeholder_lines(
    storage_config, scenario_key, fixed_now, fixed_object_id, version, line_count, golden
):
    config = storage_config.model_copy(update={"api_version": version})
    signer = _signer(config, fixed_now, fixed_object_id)

    string_to_sign = signer.string_to_sign(scenario_key, fixed_object_id, fixed_now)
    lines = string_to_sign.split("\n")

    assert len(lines) == line_count
    assert lines[9] == "2019-12-12"
    assert lines[10:13] == ["", "", ""]
    assert signer.signature(scenario_key, string_to_sign) == golden


def test_signed_url_layout(storage_config, scenario_key, fixed_now, fixed_object_id):
    signed = _signer(storage_config, fixed_now, fixed_object_id).sign(scenario_key)

    parts = urlsplit(signed.url)
    assert parts.scheme == "https"
    assert parts.netloc == "myaccount.blob.core.windows.net"
    assert parts.path == "/receive/0/0f/0f8fad5b-d9cb-469f-a165-70867728950e"
    assert parts.query == (
        "sp=wt&st=2024-01-01T11%3A45%3A00Z&se=2024-01-02T00%3A00%3A00Z"
        "&skoid=abc&sktid=def&skt=2024-01-01T00%3A00%3A00Z&ske=2024-01-03T00%3A00%3A00Z"
        "&sks=b&skv=2019-12-12&spr=https&sv=2019-12-12&sr=b"
        "&sig=X2EdaLmDXIbdeDPAvDS1aeTpmPVhkHJyR6kOHdkSHPA%3D"
    )


def test_query_omits_empty_fields_but_string_to_sign_keeps_them(
    storage_config, scenario_key, fixed_now, fixed_object_id
):
    signer = _signer(storage_config, fixed_now, fixed_object_id)
    fields = signer.fields(scenario_key, fixed_object_id, fixed_now)
    query = dict(parse_qsl(urlsplit(signer.sign(scenario_key).url).query, keep_blank_values=True))

    assert all(value for value in query.values())
    assert "sip" not in query and "rscc" not in query
    assert "canonicalizedResource" not in query
    assert len(fields) == 20
    assert [f.name for f in fields if f.query_key is None] == [
        "canonicalizedResource",
        "signedSnapshotTime",
    ]


def test_signed_ip_is_emitted_when_set(storage_config, scenario_key, fixed_now, fixed_object_id):
    config = storage_config.model_copy(update={"signed_ip": "10.0.0.1-10.0.0.9"})
    signer = _signer(config, fixed_now, fixed_object_id)

    query = urlsplit(signer.sign(scenario_key).url).query
    assert "&sip=10.0.0.1-10.0.0.9&spr=https&" in query
    assert signer.string_to_sign(scenario_key, fixed_object_id, fixed_now).split("\n")[10] == (
        "10.0.0.1-10.0.0.9"
    )


def test_signing_is_deterministic(storage_config, scenario_key, fixed_now, fixed_object_id):
    signer = _signer(storage_config, fixed_now, fixed_object_id)
    assert signer.sign(scenario_key) == signer.sign(scenario_key)


def test_changing_canonical_resource_changes_signature(
    storage_config, scenario_key, fixed_now, fixed_object_id
):
    signer = _signer(storage_config, fixed_now, fixed_object_id)
    original = signer.string_to_sign(scenario_key, fixed_object_id, fixed_now)
    tampered = original.replace(RESOURCE, RESOURCE.replace("/receive/", "/other/"))

    assert tampered != original
    assert signer.signature(scenario_key, tampered) != signer.signature(scenario_key, original)


def test_different_now_changes_window_not_principal(
    storage_config, scenario_key, fixed_now, fixed_object_id
):
    first = _signer(storage_config, fixed_now, fixed_object_id).sign(scenario_key)
    later = _signer(storage_config, fixed_now + timedelta(hours=1), fixed_object_id).sign(
        scenario_key
    )

    q1 = dict(parse_qsl(urlsplit(first.url).query))
    q2 = dict(parse_qsl(urlsplit(later.url).query))
    assert q1["st"] != q2["st"]
    assert q1["se"] != q2["se"]
    assert q1["sig"] != q2["sig"]
    for key in ("skoid", "sktid", "skt", "ske"):
        assert q1[key] == q2[key]


def test_blob_path_sharding():
    for _ in range(20):
        u = str(uuid.uuid4())
        assert blob_path(u) == f"{u[0]}/{u[0:2]}/{u}"


def test_default_id_factory_yields_uuid(storage_config, scenario_key):
    signed = SasSigner(storage_config).sign(scenario_key)
    assert str(uuid.UUID(signed.object_id)) == signed.object_id
    assert f"/receive/{blob_path(signed.object_id)}?" in signed.url


def test_blob_host_override(storage_config, scenario_key, fixed_now, fixed_object_id):
    signed = _signer(storage_config, fixed_now, fixed_object_id).sign(
        scenario_key, blob_host="uploads.example.com"
    )
    assert signed.url.startswith(
        "https://uploads.example.com/receive/0/0f/0f8fad5b-d9cb-469f-a165-70867728950e?"
    )
    # The override changes only the host, never the signed resource.
    assert signed.url.endswith(GOLDEN_2019_12_12.replace("=", "%3D"))


@pytest.mark.parametrize("secret", ["not base64!!", ""])
def test_invalid_key_secret_raises(storage_config, scenario_key, fixed_now, fixed_object_id, secret):
    key = scenario_key.model_copy(update={"value": secret})
    with pytest.raises(SigningError):
        _signer(storage_config, fixed_now, fixed_object_id).sign(key)


def test_missing_container_raises(storage_config, scenario_key, fixed_now, fixed_object_id):
    config = storage_config.model_copy(update={"container": ""})
    with pytest.raises(SigningError):
        _signer(config, fixed_now, fixed_object_id).sign(scenario_key)


def test_window_outside_key_is_signed_with_warning(
    storage_config, scenario_key, fixed_now, fixed_object_id, caplog
):
    late = fixed_now + timedelta(days=2)
    with caplog.at_level(logging.WARNING, logger="sasdelegate.signing"):
        signed = _signer(storage_config, late, fixed_object_id).sign(scenario_key)
    assert "sig=" in signed.url
    assert "exceeds delegation key window" in caplog.text


def test_signature_is_percent_encoded():
    query = build_query_string([], "a+b/c=")
    assert query == "sig=a%2Bb%2Fc%3D"
    assert unquote(query[len("sig="):]) == "a+b/c="
