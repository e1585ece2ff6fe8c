"""Exceptions raised by the token service."""
from __future__ import annotations


class TokenError(ValueError):
    """Base class for every token issuance or verification failure."""


class SigningError(TokenError):
    """A token could not be issued."""


class MalformedTokenError(TokenError):
    """The token does not have the compact ``header.payload.signature`` shape."""


class UnsupportedAlgorithmError(TokenError):
    """The token header declares an algorithm other than the accepted one."""


class SignatureMismatchError(TokenError):
    """The embedded signature does not match the recomputed one."""


class ExpiredTokenError(TokenError):
    """The token's ``exp`` claim is not in the future."""


class ConfigurationError(ValueError):
    """The signing secret is missing from the environment."""


__all__ = [
    "TokenError",
    "SigningError",
    "MalformedTokenError",
    "UnsupportedAlgorithmError",
    "SignatureMismatchError",
    "ExpiredTokenError",
    "ConfigurationError",
]
