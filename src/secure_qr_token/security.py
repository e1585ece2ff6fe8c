"""Issuance and verification of compact HS256 tokens."""
from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping

import jwt
from jwt.utils import base64url_encode

from .config import TokenConfig
from .errors import (
    ExpiredTokenError,
    MalformedTokenError,
    SignatureMismatchError,
    SigningError,
    UnsupportedAlgorithmError,
)

logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHM = "HS256"

_COMPACT_TOKEN = re.compile(r"[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*")

_IGNORABLE_WHITESPACE = "\t\n\x0b\x0c\r "

# Time based claims are checked against the service clock, not by PyJWT.
_DECODE_OPTIONS = {
    "require": ["exp"],
    "verify_signature": True,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}


class _ClaimsEncoder(json.JSONEncoder):
    """Sorted keys and no NaN/Infinity, so equal claims sign identically."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs["sort_keys"] = True
        kwargs["allow_nan"] = False
        super().__init__(*args, **kwargs)


@dataclass(frozen=True, slots=True)
class VerifiedToken:
    """Header and claims of a token that passed every check."""

    header: Dict[str, Any]
    payload: Dict[str, Any]


@dataclass(slots=True)
class TokenService:
    """Sign and verify compact tokens with a single symmetric secret.

    Tokens are always HS256; the algorithm is not configurable.  The secret
    is injected at construction and never changes afterwards, so one
    instance can be shared between concurrent callers.  ``clock`` returns the
    current POSIX time in seconds and is read once per call.
    """

    secret: bytes | str = field(repr=False)
    config: TokenConfig = field(default_factory=TokenConfig)
    clock: Callable[[], float] = field(default=time.time, repr=False)

    def __post_init__(self) -> None:
        if isinstance(self.secret, str):
            self.secret = self.secret.encode("utf-8")

    @classmethod
    def from_env(
        cls,
        config: TokenConfig | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "TokenService":
        """Build a service keyed by the secret named in ``config``."""

        config = config or TokenConfig()
        return cls(config.load_secret(environ), config)

    def issue(self, payload: Mapping[str, Any]) -> str:
        """Return a compact token carrying ``payload`` plus ``iat`` and ``exp``.

        Any ``iat`` or ``exp`` already present in ``payload`` is replaced.
        """

        if not self.secret:
            raise SigningError("Cannot sign a token without a secret")
        if not isinstance(payload, Mapping):
            raise SigningError("Token payload must be a mapping")
        if any(not isinstance(key, str) for key in payload):
            raise SigningError("Token claim names must be strings")

        issued_at = int(self.clock())
        claims = dict(payload)
        claims["iat"] = issued_at
        claims["exp"] = issued_at + self.config.ttl_seconds

        try:
            token = jwt.encode(
                claims,
                self.secret,
                algorithm=SUPPORTED_ALGORITHM,
                json_encoder=_ClaimsEncoder,
            )
        except (TypeError, ValueError) as exc:
            raise SigningError(f"Token payload is not JSON serialisable: {exc}") from exc
        except jwt.PyJWTError as exc:
            raise SigningError(f"Token could not be signed: {exc}") from exc

        logger.debug("Issued token expiring at %s", claims["exp"])
        return token

    def _decode(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode_complete(
                token,
                self.secret,
                algorithms=[SUPPORTED_ALGORITHM],
                options=_DECODE_OPTIONS,
            )
        except jwt.InvalidAlgorithmError as exc:
            logger.info("Rejected token with unsupported algorithm: %s", exc)
            raise UnsupportedAlgorithmError(
                f"Token algorithm is not accepted; expected {SUPPORTED_ALGORITHM}"
            ) from exc
        except jwt.InvalidSignatureError as exc:
            logger.info("Rejected token with mismatching signature")
            raise SignatureMismatchError("Token signature does not match") from exc
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError(str(exc)) from exc
        except jwt.InvalidKeyError as exc:
            raise SignatureMismatchError(f"Secret cannot verify HS256 tokens: {exc}") from exc
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected malformed token: %s", exc)
            raise MalformedTokenError(str(exc)) from exc
        except RecursionError as exc:
            logger.info("Rejected token nested too deeply")
            raise MalformedTokenError("Token JSON is nested too deeply") from exc

    def verify(self, token: str) -> VerifiedToken:
        """Return the header and claims of ``token`` if every check passes."""

        if not isinstance(token, str):
            raise MalformedTokenError("Token must be a string")
        token = token.strip(_IGNORABLE_WHITESPACE)
        if len(token) > self.config.max_token_length:
            logger.info("Rejected token of %d characters", len(token))
            raise MalformedTokenError(
                f"Token is longer than {self.config.max_token_length} characters"
            )
        if _COMPACT_TOKEN.fullmatch(token) is None:
            logger.info("Rejected token that is not three base64url segments")
            raise MalformedTokenError("Token must be three dot separated base64url segments")
        if not self.secret:
            raise SignatureMismatchError("Cannot verify a token without a secret")

        decoded = self._decode(token)

        # Unused trailing bits in the signature segment must match as well.
        signature_segment = token.rpartition(".")[2]
        if base64url_encode(decoded["signature"]).decode("ascii") != signature_segment:
            logger.info("Rejected token with non-canonical signature encoding")
            raise SignatureMismatchError("Token signature does not match")

        payload = decoded["payload"]
        try:
            expires_at = int(payload["exp"])
        except (TypeError, ValueError, OverflowError) as exc:
            raise MalformedTokenError("Token exp claim must be an integer") from exc

        if self.clock() >= expires_at:
            logger.info("Rejected token that expired at %s", expires_at)
            raise ExpiredTokenError(f"Token expired at {expires_at}")

        return VerifiedToken(header=decoded["header"], payload=payload)


_default_service: TokenService | None = None


def default_service() -> TokenService:
    """Return the process-wide service keyed from the environment.

    The first call reads the secret; call it once at startup before any
    scans are handled.
    """

    global _default_service
    if _default_service is None:
        _default_service = TokenService.from_env()
    return _default_service


def issue(payload: Mapping[str, Any]) -> str:
    """Issue ``payload`` with the process-wide service."""

    return default_service().issue(payload)


def verify(token: str) -> VerifiedToken:
    """Verify ``token`` with the process-wide service."""

    return default_service().verify(token)


__all__ = [
    "SUPPORTED_ALGORITHM",
    "TokenService",
    "VerifiedToken",
    "default_service",
    "issue",
    "verify",
]
