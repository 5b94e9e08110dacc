"""
Command line for loading, comparing and signing validator lists.

Usage:
    unl load <url-or-file>
    unl compare <url-or-file> <url-or-file>
    unl sign --version 2 --manifest <b64> --manifests manifests.txt \\
        --sequence 5 --expiration-days 180 \\
        --secret-provider env --secret-id UNL_SIGNING_KEY \\
        --effective-date 2026-11-01 --effective-time 00:00
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone

from rich.console import Console
from rich.text import Text

from .compare import compare_documents
from .config import get_settings
from .epoch import parse_effective
from .errors import UnlError
from .keystore import SecretProviderKind, build_provider
from .persist import write_document
from .sign import SigningRequest, sign_document
from .sources import AutoDocumentSource, load_document, read_manifests_file
from .summary import format_comparison, format_verification, styled_line
from .verify import verify_document

logger = logging.getLogger(__name__)

_console = Console()
_err_console = Console(stderr=True)


def _print_lines(lines: list[str]) -> None:
    for line in lines:
        _console.print(styled_line(line), soft_wrap=True)


async def cmd_load(args: argparse.Namespace) -> int:
    document = await load_document(args.source, AutoDocumentSource(get_settings()))
    verification = verify_document(document)
    _print_lines(format_verification(verification))
    return 0


async def cmd_compare(args: argparse.Namespace) -> int:
    source = AutoDocumentSource(get_settings())
    first = verify_document(await load_document(args.first, source))
    second = verify_document(await load_document(args.second, source))
    _print_lines(format_comparison(compare_documents(first, second), args.first, args.second))
    return 0


async def cmd_sign(args: argparse.Namespace) -> int:
    settings = get_settings()
    now = datetime.now(timezone.utc)

    effective = None
    if args.effective_date:
        effective = parse_effective(args.effective_date, args.effective_time)

    provider = build_provider(SecretProviderKind.from_str(args.secret_provider), settings)
    request = SigningRequest(
        version=args.version,
        manifest=args.manifest.strip(),
        validator_manifests=[],
        sequence=args.sequence,
        expiration_days=args.expiration_days,
        effective=effective,
    )
    request.validate_options(now, with_prior=bool(args.prior))

    request.validator_manifests = read_manifests_file(args.manifests)
    if args.prior:
        request.prior_document = await load_document(args.prior, AutoDocumentSource(settings))
    document = await sign_document(request, provider, args.secret_id, now=now)

    output = args.output or settings.output_path
    written = write_document(document, output)
    _console.print(styled_line(f"UNL file generated {'✓' if written else '✗'} ({output})"), soft_wrap=True)
    return 0 if written else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unl",
        description="Load, compare and sign validator list (UNL) documents.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    load = commands.add_parser("load", help="Decode and verify a document")
    load.add_argument("source", help="URL or file path")
    load.set_defaults(handler=cmd_load)

    compare = commands.add_parser("compare", help="Compare the validators of two documents")
    compare.add_argument("first", help="URL or file path")
    compare.add_argument("second", help="URL or file path")
    compare.set_defaults(handler=cmd_compare)

    sign = commands.add_parser("sign", help="Build and sign a new document")
    sign.add_argument("--version", type=int, choices=[1, 2], default=1, help="Document version")
    sign.add_argument("--manifest", required=True, help="Publisher manifest (base64)")
    sign.add_argument("--manifests", required=True, help="File with one validator manifest per line")
    sign.add_argument("--sequence", type=int, required=True, help="Blob sequence number")
    sign.add_argument("--expiration-days", type=int, required=True, help="Days until the blob expires")
    sign.add_argument(
        "--secret-provider",
        default=SecretProviderKind.ENV.value,
        help="Where the signing key pair lives (env, azure)",
    )
    sign.add_argument("--secret-id", required=True, help="Secret name / environment variable")
    sign.add_argument("--effective-date", help="Version 2 effective date (YYYY-MM-DD, UTC)")
    sign.add_argument("--effective-time", help="Version 2 effective time (HH:MM[:SS], UTC)")
    sign.add_argument("--prior", help="Existing version 2 document whose other blobs are kept")
    sign.add_argument("-o", "--output", help="Output path (default: UNL_OUTPUT_PATH or unl.json)")
    sign.set_defaults(handler=cmd_sign)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return asyncio.run(args.handler(args))
    except UnlError as exc:
        logger.debug("command failed", exc_info=True)
        _err_console.print(Text(f"Error [{exc.code.value}]: {exc.message}", style="red"), soft_wrap=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
