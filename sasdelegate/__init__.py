"""sasdelegate: user delegation SAS issuance for blob uploads."""

from .auth.token import TokenAcquirer
from .config import SasDelegateConfig, StorageConfig, load_config
from .contracts import BearerToken, DelegationKey, PipelineResult, SignedUrl
from .dates import az_iso_date
from .delegation import DelegationKeyFetcher
from .errors import (
    ConfigurationError,
    DelegationKeyError,
    SasDelegateError,
    SigningError,
    TokenAcquisitionError,
    TransportError,
)
from .pipeline import run_pipeline
from .signing import SasSigner
from .transports import get_transport

__version__ = "0.1.0"
__all__ = [
    "BearerToken",
    "ConfigurationError",
    "DelegationKey",
    "DelegationKeyError",
    "DelegationKeyFetcher",
    "PipelineResult",
    "SasDelegateConfig",
    "SasDelegateError",
    "SasSigner",
    "SignedUrl",
    "SigningError",
    "StorageConfig",
    "TokenAcquirer",
    "TokenAcquisitionError",
    "TransportError",
    "az_iso_date",
    "get_transport",
    "load_config",
    "run_pipeline",
]
