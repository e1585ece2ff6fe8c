"""Verification of values handed over by a barcode scanner."""
from __future__ import annotations

import logging
from typing import Optional

from .qr import QRCodeManager
from .security import TokenService, VerifiedToken

logger = logging.getLogger(__name__)

QR_CODE_FORMAT = "QR_CODE"


def verify_scanned(
    value: bytes | bytearray | str,
    service: TokenService,
    *,
    barcode_format: str = QR_CODE_FORMAT,
) -> Optional[VerifiedToken]:
    """Verify the token carried by a scanned barcode.

    Barcodes that are not QR codes are ignored and ``None`` is returned.
    Token errors propagate so the caller can decide whether to scan again.
    """

    if barcode_format.upper() != QR_CODE_FORMAT:
        logger.debug("Ignoring %s barcode", barcode_format)
        return None

    token = QRCodeManager(service.config).extract_token(value)
    return service.verify(token)


__all__ = ["QR_CODE_FORMAT", "verify_scanned"]
