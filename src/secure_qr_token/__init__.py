"""Signed QR token package."""
from __future__ import annotations

from .config import TokenConfig
from .errors import (
    ConfigurationError,
    ExpiredTokenError,
    MalformedTokenError,
    SignatureMismatchError,
    SigningError,
    TokenError,
    UnsupportedAlgorithmError,
)
from .qr import QRCodeManager
from .scan import verify_scanned
from .security import TokenService, VerifiedToken, default_service

__all__ = [
    "TokenConfig",
    "TokenService",
    "VerifiedToken",
    "default_service",
    "QRCodeManager",
    "verify_scanned",
    "TokenError",
    "SigningError",
    "MalformedTokenError",
    "UnsupportedAlgorithmError",
    "SignatureMismatchError",
    "ExpiredTokenError",
    "ConfigurationError",
]

__version__ = "1.0"
