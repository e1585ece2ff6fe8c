from __future__ import annotations

import sys
import types

import pytest

from secure_qr_token.config import TokenConfig
from secure_qr_token.errors import MalformedTokenError
from secure_qr_token.qr import QRCodeManager
from secure_qr_token.security import TokenService

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.fixture()
def manager() -> QRCodeManager:
    return QRCodeManager(TokenConfig())


def test_token_digest_matches_sha256(manager: QRCodeManager):
    digest = manager.token_digest(b"header.payload.signature")

    assert digest == manager.token_digest("header.payload.signature")
    assert len(digest) == 64


def test_save_png_returns_digest(monkeypatch, tmp_path, manager: QRCodeManager):
    """``save_png`` should return the digest even when segno is mocked."""

    calls = {}

    class DummyQR:
        def save(self, path, **kwargs):
            calls["save"] = (path, kwargs)

    def fake_make(data, **kwargs):
        calls["make"] = (data, kwargs)
        return DummyQR()

    monkeypatch.setitem(sys.modules, "segno", types.SimpleNamespace(make=fake_make))

    output = str(tmp_path / "token.png")
    digest = manager.save_png("a.b.c\n", output)

    assert digest == manager.token_digest("a.b.c")
    assert calls["make"] == ("a.b.c", {"error": "M"})
    assert calls["save"] == (output, {"scale": 10, "border": 4})


def test_save_png_writes_image(tmp_path, manager: QRCodeManager):
    pytest.importorskip("segno")
    token = TokenService(b"secret").issue({"sub": "ticket-42"})
    output = tmp_path / "token.png"

    manager.save_png(token, str(output))

    assert output.read_bytes().startswith(PNG_SIGNATURE)


def test_is_available_reports_segno(manager: QRCodeManager):
    pytest.importorskip("segno")

    assert manager.is_available()


def test_extract_token_strips_scanner_noise(manager: QRCodeManager):
    assert manager.extract_token(b"a.b.c\r\n\x00") == "a.b.c"
    assert manager.extract_token(bytearray(b" a.b.c ")) == "a.b.c"
    assert manager.extract_token("\ta.b.c\n") == "a.b.c"


@pytest.mark.parametrize("payload", [b"\xff\xfe", "a.b.é", 42])
def test_extract_token_rejects_non_ascii(manager: QRCodeManager, payload):
    with pytest.raises(MalformedTokenError):
        manager.extract_token(payload)
