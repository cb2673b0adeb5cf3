#!/usr/bin/env python3
"""
invoicecommit Command Line Interface

Usage:
    invoicecommit newinvoice <month> <year> <csvfile> [<attachment> ...]
    invoicecommit verify --record <file> [--server-key <hex>]
    invoicecommit parse --file <csvfile>
    invoicecommit digest --file <file>
    invoicecommit keygen --output <file>
"""

import argparse
import json
import sys
from typing import Any, Dict, Optional

from .bundle import read_file
from .client import InvoiceClient
from .config import Settings
from .errors import (
    InvoiceCommitError,
    ServerError,
    TransportError,
    VerificationError,
)
from .hashing import digest_hex
from .logging_config import configure_logging
from .mime import detect_mime_type
from .parser import parse_invoice_csv
from .records import CensorshipRecord, SubmissionBundle
from .signing import Identity, load_identity
from .submission import InvoiceSubmitter
from .verifier import CensorshipRecordVerifier


EXIT_OK = 0
EXIT_UNVERIFIED = 1
EXIT_USER_ERROR = 2
EXIT_TRANSPORT = 3
EXIT_REJECTED = 4


def load_json(path: str) -> dict:
    """Load JSON from file."""
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def save_json(data: dict, path: str):
    """Save JSON to file."""
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)


def print_json(data: Any):
    print(json.dumps(data, indent=2))


def make_client(settings: Settings) -> InvoiceClient:
    return InvoiceClient(
        settings.host,
        timeout=settings.timeout,
        verify=settings.tls_verify,
    )


def cmd_newinvoice(args, settings: Settings) -> int:
    """Submit a new invoice and verify its censorship record."""
    identity = load_identity(settings.identity_path)
    submitter = InvoiceSubmitter(make_client(settings), identity)

    if args.dry_run:
        bundle = submitter.prepare(args.month, args.year, args.csvfile, args.attachments)
        print_json(bundle.to_request())
        return EXIT_OK

    try:
        result = submitter.submit(args.month, args.year, args.csvfile, args.attachments)
    except VerificationError as e:
        if e.reply is not None:
            print_json(e.reply.to_dict())
        raise

    print_json(result.bundle.to_request())
    print_json(result.reply.to_dict())
    if args.save:
        save_json(
            {"request": result.bundle.to_request(), "reply": result.reply.to_dict()},
            args.save,
        )
        print(f"Submission saved to: {args.save}", file=sys.stderr)

    print(f"\n✓ invoice {result.token} verified", file=sys.stderr)
    return EXIT_OK


def cmd_verify(args, settings: Settings) -> int:
    """Verify a saved submission against the authority key."""
    try:
        document = load_json(args.record)
        bundle = SubmissionBundle.from_request(document["request"])
        record = CensorshipRecord.from_dict(document["reply"]["censorshiprecord"])
    except (OSError, KeyError, TypeError, ValueError) as e:
        print(f"✗ cannot load record file: {e}", file=sys.stderr)
        return EXIT_USER_ERROR

    server_key = args.server_key or make_client(settings).version().pubkey
    result = CensorshipRecordVerifier().verify(
        bundle.files, bundle.public_key, bundle.signature, record, server_key
    )

    if result.is_valid():
        print(f"✓ {result.outcome.value} {record.token}")
        return EXIT_OK
    print(f"✗ {result.outcome.value}: {result.reason}")
    if result.details:
        print_json(result.details)
    return EXIT_UNVERIFIED


def cmd_parse(args, settings: Settings) -> int:
    """Parse an invoice table and print it as JSON."""
    invoice = parse_invoice_csv(read_file(args.file))
    print_json(invoice.to_dict()["lineitems"])
    return EXIT_OK


def cmd_digest(args, settings: Settings) -> int:
    """Print the digest and detected media type of a file."""
    data = read_file(args.file)
    print(f"digest: {digest_hex(data)}")
    print(f"mime:   {detect_mime_type(data)}")
    return EXIT_OK


def cmd_keygen(args, settings: Settings) -> int:
    """Generate a new Ed25519 user identity."""
    identity = Identity.generate(kid=args.key_id)
    identity.save(args.output)
    print(f"Identity saved to: {args.output}", file=sys.stderr)
    print(f"public key: {identity.public_key_hex}")
    return EXIT_OK


COMMANDS = {
    "newinvoice": cmd_newinvoice,
    "verify": cmd_verify,
    "parse": cmd_parse,
    "digest": cmd_digest,
    "keygen": cmd_keygen,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="invoicecommit",
        description="Submit signed invoices and verify censorship records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  invoicecommit keygen -o ~/.invoicecommit/identity.json
  invoicecommit parse -f invoice.csv
  invoicecommit newinvoice 04 2019 invoice.csv receipt.png --save sub.json
  invoicecommit verify -r sub.json -k <authority public key>
        """
    )
    parser.add_argument("--host", help="Authority base URL")
    parser.add_argument("--identity", help="User identity file")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("--ca-cert", help="CA bundle for the authority's TLS certificate")
    parser.add_argument("--skip-verify", action="store_true", default=None,
                        help="Skip TLS certificate verification")
    parser.add_argument("--log-level", help="Log level")
    parser.add_argument("--json-logs", action="store_true", default=None,
                        help="Emit structured JSON logs")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # newinvoice
    new_parser = subparsers.add_parser(
        "newinvoice",
        help="Submit a new invoice",
        description="Submit a new invoice. Accepted attachment types: png or plain text.",
    )
    new_parser.add_argument("month", help="Month (MM, 01-12)")
    new_parser.add_argument("year", help="Year (YYYY)")
    new_parser.add_argument("csvfile", help="Invoice CSV file")
    new_parser.add_argument("attachments", nargs="*", help="Attachment files")
    new_parser.add_argument("--dry-run", action="store_true",
                            help="Print the signed request without sending it")
    new_parser.add_argument("-s", "--save", help="Save request and reply to this file")

    # verify
    verify_parser = subparsers.add_parser("verify", help="Verify a saved submission")
    verify_parser.add_argument("-r", "--record", required=True, help="Saved submission JSON file")
    verify_parser.add_argument("-k", "--server-key",
                               help="Authority public key (hex); fetched from --host if omitted")

    # parse
    parse_parser = subparsers.add_parser("parse", help="Parse an invoice CSV file")
    parse_parser.add_argument("-f", "--file", required=True, help="Invoice CSV file")

    # digest
    digest_parser = subparsers.add_parser("digest", help="Digest a file")
    digest_parser.add_argument("-f", "--file", required=True, help="File to digest")

    # keygen
    keygen_parser = subparsers.add_parser("keygen", help="Generate a user identity")
    keygen_parser.add_argument("-o", "--output", required=True, help="Output identity file")
    keygen_parser.add_argument("-k", "--key-id", default="user-identity", help="Key identifier")

    return parser


def resolve_settings(args) -> Settings:
    """
    Environment settings overridden by command line flags.

    Raises:
        ConfigurationError: a resulting setting is invalid
    """
    settings = Settings.from_env()
    overrides: Dict[str, Optional[Any]] = {
        "host": args.host,
        "identity_path": args.identity,
        "timeout": args.timeout,
        "ca_cert_path": args.ca_cert,
        "skip_verify": args.skip_verify,
        "log_level": args.log_level,
        "log_json": args.json_logs,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(settings, name, value)
    settings.validate()
    return settings


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_USER_ERROR

    try:
        settings = resolve_settings(args)
        configure_logging(level=settings.log_level, json_format=settings.log_json)
        return COMMANDS[args.command](args, settings)
    except VerificationError as e:
        print(f"✗ {e}", file=sys.stderr)
        return EXIT_UNVERIFIED
    except TransportError as e:
        print(f"✗ {e} (retryable)", file=sys.stderr)
        return EXIT_TRANSPORT
    except ServerError as e:
        print(f"✗ {e}", file=sys.stderr)
        return EXIT_REJECTED
    except InvoiceCommitError as e:
        print(f"✗ {e}", file=sys.stderr)
        return EXIT_USER_ERROR
    except OSError as e:
        print(f"✗ {e}", file=sys.stderr)
        return EXIT_USER_ERROR


if __name__ == "__main__":
    sys.exit(main())
