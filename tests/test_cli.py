from __future__ import annotations

import json

import pytest

from secure_qr_token.cli import EXIT_CONFIG_ERROR, EXIT_OK, EXIT_TOKEN_ERROR, run
from secure_qr_token.security import TokenService


@pytest.fixture(autouse=True)
def secret(monkeypatch):
    monkeypatch.setenv("AUTH_PASSWORD", "cli-secret")


def test_issue_then_verify(capsys):
    assert run(["issue", "--claims", '{"ticket": "A-17"}']) == EXIT_OK
    token = capsys.readouterr().out.strip()

    assert run(["verify", token]) == EXIT_OK
    output = json.loads(capsys.readouterr().out)

    assert output["header"]["alg"] == "HS256"
    assert output["payload"]["ticket"] == "A-17"


def test_issue_rejects_invalid_claims(capsys):
    assert run(["issue", "--claims", "not json"]) == EXIT_TOKEN_ERROR
    assert run(["issue", "--claims", "[1, 2]"]) == EXIT_TOKEN_ERROR
    assert capsys.readouterr().out == ""


def test_verify_reports_token_errors(capsys):
    token = TokenService(b"other-secret").issue({"ticket": "A-17"})

    assert run(["verify", token]) == EXIT_TOKEN_ERROR
    assert run(["verify", "garbage"]) == EXIT_TOKEN_ERROR
    assert capsys.readouterr().out == ""


def test_verify_reports_oversized_token_without_traceback(capsys):
    token = "eyJhbGciOiJIUzI1NiJ9." + "A" * 9_000 + ".AAAA"

    assert run(["verify", token]) == EXIT_TOKEN_ERROR
    assert capsys.readouterr().out == ""


def test_missing_secret_is_a_configuration_error(monkeypatch):
    monkeypatch.delenv("AUTH_PASSWORD")

    assert run(["verify", "a.b.c"]) == EXIT_CONFIG_ERROR


def test_verify_requires_a_source():
    with pytest.raises(SystemExit):
        run(["verify"])
