"""
CLI command handlers.

Each handler takes the parsed namespace and returns the RESULT value of
the success envelope.  Errors propagate as PdfSigError subclasses.
"""

from __future__ import annotations

import argparse
import logging

from ... import api
from ...constants import __version__
from ..helpers import decode_base64, require

_logger = logging.getLogger(__name__)

VERSION_TEXT = f"pdfsig PKCS#7 document signer v{__version__}"

HELP_TEXT = """
pdfsig PKCS#7 document signer

Usage:
  help                                        Show this help
  version, --version, -v                      Display current version number
  placeholder                                 Add a signature placeholder
    --file <path>                             Path to the document
    --out <path>                              Path where to save a new document
    [--estimatedsize <int>]                   Estimated signature size, default is 30000 bytes
    [--certlevel <int>]                       Desired certification level, default is 0
      * 0                                     Not certified
      * 1                                     Certified, no changes allowed
      * 2                                     Certified, form filling
      * 3                                     Certified, form filling and annotations
    [--password <string>]                     Document password
    [--reason <reason>]                       Signing reason
    [--location <location>]                   Signing location
    [--contact <contact>]                     Signing contact
    [--date <date>]                           Date of signing in ISO 8601 format
  digest                                      Calculate document digest excluding signatures
    --file <path>                             Path to the document
    [--password <string>]                     Document password
    [--algorithm <SHA-256|SHA-384|SHA-512>]   Digest algorithm, default is SHA-512
  sign                                        Sign the document with external signature
    --file <path>                             Path to the document
    --out <path>                              Path where to save a new document
    --signature <base64 string>               Base64-encoded signature
    [--password <string>]                     Document password
  ltv                                         Add LTV information to the document
    --file <path>                             Path to the document
    --out <path>                              Path where to save a new document
    --crl <base64 string>...                  Base64-encoded CRL (repeat --crl for each)
    --ocsp <base64 string>...                 Base64-encoded OCSP response (repeat --ocsp for each)
    [--password <string>]                     Document password
  verify                                      Check embedded signatures against their byte ranges
    --file <path>                             Path to the document
    [--password <string>]                     Document password

Environment variables:
  PDFSIG_ESTIMATED_SIZE   Default estimated signature size in bytes
  PDFSIG_ALGORITHM        Default digest algorithm
  PDFSIG_LOG_LEVEL        Log level for stderr diagnostics (default: WARNING)

Example
  placeholder --file file.pdf --out placeholdered.pdf
  digest --file placeholdered.pdf --algorithm sha512
  sign --file placeholdered.pdf --out signed.pdf --signature abb4rjfh=
  ltv --file signed.pdf --out signedltv.pdf --crl abb4rjfh= --ocsp fgsllldj5kg=
""".strip("\n")


def cmd_help(_args: argparse.Namespace) -> str:
    return "\n" + HELP_TEXT


def cmd_version(_args: argparse.Namespace) -> str:
    return VERSION_TEXT


def cmd_placeholder(args: argparse.Namespace) -> str:
    return api.add_placeholder(
        require(args.file, "file"),
        require(args.out, "out"),
        estimated_size=args.estimatedsize,
        certification_level=args.certlevel,
        password=args.password,
        reason=args.reason,
        location=args.location,
        contact=args.contact,
        date=args.date,
    )


def cmd_digest(args: argparse.Namespace) -> str:
    return api.compute_digest(
        require(args.file, "file"),
        password=args.password,
        algorithm=args.algorithm,
    )


def cmd_sign(args: argparse.Namespace) -> str:
    signature = decode_base64(require(args.signature, "signature"), "--signature")
    return api.sign_pdf(
        require(args.file, "file"),
        require(args.out, "out"),
        signature,
        password=args.password,
    )


def cmd_ltv(args: argparse.Namespace) -> str:
    crls = [decode_base64(value, "--crl") for value in args.crl]
    ocsps = [decode_base64(value, "--ocsp") for value in args.ocsp]
    return api.add_ltv_to_pdf(
        require(args.file, "file"),
        require(args.out, "out"),
        crl=crls,
        ocsp=ocsps,
        password=args.password,
    )


def cmd_verify(args: argparse.Namespace) -> str:
    reports = api.verify_pdf(require(args.file, "file"), password=args.password)
    for report in reports:
        _logger.info(
            "%s: filled=%s digest=%s match=%s",
            report.name,
            report.filled,
            report.digest_algorithm,
            report.digest_matches,
        )
    return "VALID" if reports and all(report.valid for report in reports) else "INVALID"
