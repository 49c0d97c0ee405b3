"""Value objects passed between the pipeline stages."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import SasDelegateError

Stage = Literal["token", "delegation_key", "signing"]


class BearerToken(BaseModel):
    """Short-lived (~1 hour) access token issued by the identity provider."""

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(repr=False)
    token_type: str = "Bearer"
    expires_in: Optional[int] = None

    def authorization_header(self) -> str:
        return f"Bearer {self.access_token}"


class DelegationKey(BaseModel):
    """User delegation key returned by the storage service.

    Immutable once fetched; one key may sign many URLs concurrently. The
    signing window of every SAS must lie within ``signed_start`` and
    ``signed_expiry`` or the storage service rejects it at use time.
    """

    model_config = ConfigDict(frozen=True)

    signed_oid: str
    signed_tid: str
    signed_start: str
    signed_expiry: str
    signed_version: str
    value: str = Field(repr=False, description="Base64-encoded signing secret")
    signed_service: str = "b"


class SignedUrl(BaseModel):
    """Delegated upload URL for a newly minted object."""

    model_config = ConfigDict(frozen=True)

    object_id: str
    url: str


class PipelineResult(BaseModel):
    """Tagged outcome of one token -> key -> signed URL run."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    ok: bool
    stage: Stage
    key: Optional[DelegationKey] = None
    value: Optional[SignedUrl] = None
    error: Optional[SasDelegateError] = None

    @classmethod
    def success(cls, key: DelegationKey, value: SignedUrl) -> "PipelineResult":
        return cls(ok=True, stage="signing", key=key, value=value)

    @classmethod
    def failure(
        cls,
        stage: Stage,
        error: SasDelegateError,
        key: Optional[DelegationKey] = None,
    ) -> "PipelineResult":
        return cls(ok=False, stage=stage, key=key, error=error)

    def unwrap(self) -> SignedUrl:
        """Return the signed URL or raise the stage error."""
        if self.error is not None:
            raise self.error
        assert self.value is not None
        return self.value
