"""Command line interface for issuing and verifying QR tokens."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Sequence

from .config import TokenConfig
from .errors import ConfigurationError, TokenError
from .qr import QRCodeManager
from .scan import verify_scanned
from .security import TokenService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_TOKEN_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secure-qr-token",
        description="Issue and verify signed tokens carried in QR codes.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    issue = subparsers.add_parser("issue", help="issue a token for a set of claims")
    issue.add_argument("--claims", default="{}", help="claims as a JSON object")
    issue.add_argument("--png", metavar="PATH", help="also save the token as a QR code")

    verify = subparsers.add_parser("verify", help="verify a token")
    source = verify.add_mutually_exclusive_group(required=True)
    source.add_argument("token", nargs="?", help="compact token text")
    source.add_argument("--image", metavar="PATH", help="read the token from a QR image")

    return parser


def _issue(args: argparse.Namespace, service: TokenService) -> int:
    try:
        claims = json.loads(args.claims)
    except json.JSONDecodeError as exc:
        logger.error("--claims is not valid JSON: %s", exc)
        return EXIT_TOKEN_ERROR
    if not isinstance(claims, dict):
        logger.error("--claims must be a JSON object")
        return EXIT_TOKEN_ERROR

    token = service.issue(claims)
    print(token)
    if args.png:
        digest = QRCodeManager(service.config).save_png(token, args.png)
        print(f"sha256 {digest}", file=sys.stderr)
    return EXIT_OK


def _verify(args: argparse.Namespace, service: TokenService) -> int:
    value = args.token
    if args.image:
        value = QRCodeManager(service.config).read_from_file(args.image)
        if value is None:
            logger.error("No QR code found in %s", args.image)
            return EXIT_TOKEN_ERROR

    verified = verify_scanned(value, service)
    print(json.dumps({"header": verified.header, "payload": verified.payload}, indent=2))
    return EXIT_OK


def run(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        service = TokenService.from_env(TokenConfig())
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR

    handler = _issue if args.command == "issue" else _verify
    try:
        return handler(args, service)
    except TokenError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return EXIT_TOKEN_ERROR


__all__ = ["build_parser", "run"]
