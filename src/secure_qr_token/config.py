"""Configuration data structures for the QR token service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .errors import ConfigurationError


@dataclass(slots=True)
class TokenConfig:
    """Static configuration options used by the token service.

    Tokens are always signed with HS256, so there is no algorithm option.
    """

    secret_env_var: str = "AUTH_PASSWORD"
    ttl_seconds: int = 3_600
    max_token_length: int = 8_192
    qr_error_correction: str = "M"
    qr_scale: int = 10
    qr_border: int = 4

    def load_secret(self, environ: Mapping[str, str] | None = None) -> bytes:
        """Return the signing secret from the environment as UTF-8 bytes.

        A missing or empty variable is a startup problem rather than a
        per-token one, so :class:`ConfigurationError` is raised instead of a
        token error.
        """

        env = os.environ if environ is None else environ
        value = env.get(self.secret_env_var, "")
        if not value:
            raise ConfigurationError(
                f"Environment variable {self.secret_env_var} must hold the signing secret"
            )
        return value.encode("utf-8")


__all__ = ["TokenConfig"]
