"""Sequential token -> delegation key -> signed URL pipeline."""

from __future__ import annotations

import logging
from typing import Optional

from .auth.token import TokenAcquirer
from .config import StorageConfig
from .contracts import PipelineResult
from .delegation import DelegationKeyFetcher
from .errors import SasDelegateError
from .signing import SasSigner
from .transports.base import BaseTransport

logger = logging.getLogger(__name__)


def run_pipeline(
    config: StorageConfig,
    transport: BaseTransport,
    signer: Optional[SasSigner] = None,
    fetcher: Optional[DelegationKeyFetcher] = None,
    blob_host: Optional[str] = None,
) -> PipelineResult:
    """Run all three stages once and return a tagged result.

    Stage errors are captured in the result instead of being raised; the
    failing stage is named in ``result.stage``. Retries are left to the
    caller. On success ``result.key`` may be reused to sign further objects.
    """
    signer = signer or SasSigner(config)
    fetcher = fetcher or DelegationKeyFetcher(config, transport)

    try:
        token = TokenAcquirer(config, transport).acquire()
    except SasDelegateError as exc:
        logger.error(f"Token acquisition failed: {exc}")
        return PipelineResult.failure("token", exc)

    try:
        key = fetcher.fetch(token)
    except SasDelegateError as exc:
        logger.error(f"Delegation key request failed: {exc}")
        return PipelineResult.failure("delegation_key", exc)

    try:
        signed = signer.sign(key, blob_host=blob_host)
    except SasDelegateError as exc:
        logger.error(f"Signing failed: {exc}")
        return PipelineResult.failure("signing", exc, key=key)

    logger.info(f"Issued delegated URL for object {signed.object_id}")
    return PipelineResult.success(key, signed)
