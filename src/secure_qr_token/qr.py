"""QR code helpers for carrying tokens."""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Optional

from .config import TokenConfig
from .errors import MalformedTokenError

logger = logging.getLogger(__name__)

_IGNORABLE_SUFFIX = "\t\n\x0b\x0c\r \x00"
"""Characters QR readers commonly leave around the decoded text."""


@dataclass(slots=True)
class QRCodeManager:
    """Render tokens with :mod:`segno` and read them back from scans."""

    config: TokenConfig

    def is_available(self) -> bool:
        try:
            import segno  # type: ignore  # noqa: F401
        except ImportError:
            return False
        return True

    def _ensure_bytes(self, payload: bytes | bytearray | str) -> bytes:
        if isinstance(payload, (bytes, bytearray)):
            return bytes(payload)
        return payload.encode("utf-8")

    def token_digest(self, data: bytes | bytearray | str) -> str:
        """Return the SHA-256 hex digest of the QR payload.

        Printed next to a rendered code so a scanned token can be matched
        against the one that was issued.
        """

        return hashlib.sha256(self._ensure_bytes(data)).hexdigest()

    def save_png(self, token: str, path: str) -> str:
        """Write a QR code holding ``token`` to ``path`` and return its digest."""

        try:
            import segno  # type: ignore
        except ImportError as exc:  # pragma: no cover - depends on environment
            raise RuntimeError("QR generation requires segno") from exc

        payload = self.extract_token(token)
        qr = segno.make(payload, error=self.config.qr_error_correction)
        qr.save(path, scale=self.config.qr_scale, border=self.config.qr_border)
        logger.debug("Saved token QR code to %s", path)

        return self.token_digest(payload)

    def extract_token(self, data: bytes | bytearray | str) -> str:
        """Return the token text carried by a decoded QR payload.

        Scanner plugins hand back either text or raw bytes, sometimes with a
        trailing newline or NUL.  Tokens are pure ASCII so anything else is
        rejected as malformed.
        """

        if isinstance(data, (bytes, bytearray)):
            try:
                text = bytes(data).decode("ascii")
            except UnicodeDecodeError as exc:
                raise MalformedTokenError("QR payload is not ASCII text") from exc
        elif isinstance(data, str):
            text = data
        else:
            raise MalformedTokenError("QR payload must be text or bytes")

        text = text.strip(_IGNORABLE_SUFFIX)
        if not text.isascii():
            raise MalformedTokenError("QR payload is not ASCII text")
        return text

    def read_from_file(self, path: str) -> Optional[str]:  # pragma: no cover - requires optional deps
        """Decode a token from a QR image using OpenCV and :mod:`pyzbar`."""

        try:
            import cv2  # type: ignore
            from pyzbar import pyzbar  # type: ignore
        except ImportError:
            logger.warning("Reading QR images requires opencv-python and pyzbar")
            return None

        image = cv2.imread(path)
        if image is None:
            return None

        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        for processed in (
            gray,
            cv2.GaussianBlur(gray, (5, 5), 0),
            cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)[1],
        ):
            decoded = pyzbar.decode(processed, symbols=[pyzbar.ZBarSymbol.QRCODE])
            if decoded:
                return self.extract_token(decoded[0].data)

        return None


__all__ = ["QRCodeManager"]
