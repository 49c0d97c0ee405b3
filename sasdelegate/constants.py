"""Protocol constants shared by the delegation pipeline."""

from datetime import timedelta

DEFAULT_LOGIN_HOST = "login.microsoftonline.com"
DEFAULT_SCOPE = "https://storage.azure.com/.default"
BLOB_HOST_SUFFIX = "blob.core.windows.net"
HTTPS_PORT = 443

# Storage REST version used for the key request and as signed version (sv).
DEFAULT_API_VERSION = "2019-12-12"
DEFAULT_PERMISSIONS = "wt"
DEFAULT_PROTOCOL = "https"
DEFAULT_USER_AGENT = "sasdelegate"

SIGNED_KEY_SERVICE = "b"
SIGNED_RESOURCE_BLOB = "b"

CLOCK_SKEW = timedelta(minutes=15)
DELEGATION_KEY_LIFETIME = timedelta(hours=48)
SAS_LIFETIME = timedelta(hours=12)

# sv values from which the string-to-sign grows extra lines.
AUTHORIZED_OID_VERSION = "2020-02-10"
ENCRYPTION_SCOPE_VERSION = "2020-12-06"

USER_DELEGATION_KEY_PATH = "/?restype=service&comp=userdelegationkey"
