"""Tests for pdfsig.ui.cli -- command dispatch and the KEY=value envelope."""

from __future__ import annotations

import base64
import hashlib

import pytest

from pdfsig.constants import __version__
from pdfsig.errors import ArgumentError, DocumentError
from pdfsig.ui.cli import COMMANDS, build_parser, main, run
from pdfsig.ui.cli.commands import HELP_TEXT, VERSION_TEXT
from pdfsig.ui.cli.envelope import format_error, format_result, parse_envelope

from .conftest import (
    build_fake_cms,
    build_fake_crl,
    build_fake_ocsp,
    make_pdf_with_signature_value,
)


@pytest.fixture
def pdf_path(tmp_path, valid_pdf_bytes):
    path = tmp_path / "in.pdf"
    path.write_bytes(valid_pdf_bytes)
    return path


def _ok(argv):
    output, to_stdout = run(argv)
    assert to_stdout, output
    parsed = parse_envelope(output)
    assert parsed["status"] == "SUCCESS"
    return parsed["result"]


def _err(argv):
    output, to_stdout = run(argv)
    assert not to_stdout
    parsed = parse_envelope(output)
    assert parsed["status"] == "ERROR"
    return parsed


# ── envelope ────────────────────────────────────────────────────────


def test_format_result():
    assert format_result("out.pdf") == "STATUS=SUCCESS\nRESULT=out.pdf"


def test_format_error_flattens_newlines():
    text = format_error(DocumentError("line one\nline two"))
    assert text == "STATUS=ERROR\nERROR_TYPE=DocumentError\nERROR_MESSAGE=line one line two"


def test_parse_envelope_defaults_missing_keys():
    assert parse_envelope("STATUS=SUCCESS\nRESULT=abc=") == {
        "status": "SUCCESS",
        "result": "abc=",
        "error_type": None,
        "error_message": None,
    }


def test_parse_envelope_unknown_key():
    with pytest.raises(ArgumentError, match="Unsupported"):
        parse_envelope("STATUS=SUCCESS\nFOO=bar")


def test_parse_envelope_malformed_line():
    with pytest.raises(ArgumentError, match="Could not parse"):
        parse_envelope("STATUS SUCCESS")


# ── help / version ──────────────────────────────────────────────────


@pytest.mark.parametrize("command", ["version", "--version", "-v"])
def test_version_is_raw(command):
    assert run([command]) == (VERSION_TEXT, True)
    assert VERSION_TEXT.endswith(f"v{__version__}")


def test_help_is_raw():
    output, to_stdout = run(["help"])
    assert to_stdout
    assert output == "\n" + HELP_TEXT
    assert "STATUS=" not in output


def test_no_command_prints_help():
    assert run([]) == run(["help"])


def test_unknown_command_prints_help():
    assert run(["frobnicate"]) == run(["help"])


def test_command_table():
    assert set(COMMANDS) == {
        "help",
        "version",
        "--version",
        "-v",
        "placeholder",
        "digest",
        "sign",
        "ltv",
        "verify",
    }


# ── argument errors ─────────────────────────────────────────────────


def test_missing_file():
    parsed = _err(["digest"])
    assert parsed["error_type"] == "ArgumentError"
    assert "--file" in parsed["error_message"]


def test_missing_out(pdf_path):
    parsed = _err(["placeholder", "--file", str(pdf_path)])
    assert "--out" in parsed["error_message"]


def test_unknown_flag(pdf_path):
    parsed = _err(["digest", "--file", str(pdf_path), "--bogus", "1"])
    assert parsed["error_type"] == "ArgumentError"


def test_non_integer_estimated_size(pdf_path, tmp_path):
    parsed = _err(
        ["placeholder", "--file", str(pdf_path), "--out", str(tmp_path / "o.pdf"), "--estimatedsize", "big"]
    )
    assert parsed["error_type"] == "ArgumentError"


def test_bad_certlevel(pdf_path, tmp_path):
    parsed = _err(
        ["placeholder", "--file", str(pdf_path), "--out", str(tmp_path / "o.pdf"), "--certlevel", "7"]
    )
    assert "certification level" in parsed["error_message"]


def test_bad_base64_signature(tmp_path, pdf_path):
    parsed = _err(
        ["sign", "--file", str(pdf_path), "--out", str(tmp_path / "o.pdf"), "--signature", "***"]
    )
    assert parsed["error_type"] == "ArgumentError"


def test_missing_input_file(tmp_path):
    parsed = _err(["digest", "--file", str(tmp_path / "absent.pdf")])
    assert parsed["error_type"] == "DocumentError"


def test_digest_without_placeholder(pdf_path):
    parsed = _err(["digest", "--file", str(pdf_path)])
    assert parsed["error_type"] == "ArgumentError"


def test_malformed_byte_range_is_a_document_error(tmp_path):
    import pikepdf

    path = tmp_path / "bad.pdf"
    path.write_bytes(
        make_pdf_with_signature_value(
            ByteRange=pikepdf.Array([0, pikepdf.Name.X, 10, 10]),
            Contents=pikepdf.String(b"\x00"),
        )
    )
    for command in ("digest", "verify"):
        parsed = _err([command, "--file", str(path)])
        assert parsed["error_type"] == "DocumentError"
        assert "ByteRange" in parsed["error_message"]


def test_unsupported_algorithm(tmp_path, pdf_path):
    out = tmp_path / "p.pdf"
    _ok(["placeholder", "--file", str(pdf_path), "--out", str(out)])
    parsed = _err(["digest", "--file", str(out), "--algorithm", "MD5"])
    assert parsed["error_type"] == "UnsupportedAlgorithmError"


# ── full flow ───────────────────────────────────────────────────────


def test_placeholder_digest_sign_ltv_verify(tmp_path, pdf_path):
    placeholdered = tmp_path / "placeholdered.pdf"
    signed = tmp_path / "signed.pdf"
    ltv = tmp_path / "ltv.pdf"

    result = _ok(
        [
            "placeholder",
            "--out",
            str(placeholdered),
            "--file",
            str(pdf_path),
            "--estimatedsize",
            "4096",
            "--reason",
            "Approval",
            "--date",
            "2024-05-06T07:08:09Z",
        ]
    )
    assert result == str(placeholdered)

    digest = base64.b64decode(_ok(["digest", "--file", str(placeholdered), "--algorithm", "sha256"]))
    assert len(digest) == 32
    default_digest = base64.b64decode(_ok(["digest", "--buffer", str(placeholdered)]))
    assert len(default_digest) == 64

    cms = build_fake_cms(default_digest)
    signature = base64.b64encode(cms).decode("ascii")
    assert _ok(["sign", "--file", str(placeholdered), "--out", str(signed), "--signature", signature]) == str(
        signed
    )
    assert base64.b64decode(_ok(["digest", "--file", str(signed)])) == default_digest

    ocsp = base64.b64encode(build_fake_ocsp()).decode("ascii")
    crl = base64.b64encode(build_fake_crl()).decode("ascii")
    _ok(["ltv", "--file", str(signed), "--out", str(ltv), "--ocsp", ocsp, "--crl", crl, "--crl", crl])
    assert ltv.read_bytes().startswith(signed.read_bytes())

    assert _ok(["verify", "--file", str(ltv)]) == "VALID"


def test_verify_unsigned_is_invalid(pdf_path):
    assert _ok(["verify", "--file", str(pdf_path)]) == "INVALID"


def test_verify_wrong_digest_is_invalid(tmp_path, pdf_path):
    placeholdered = tmp_path / "p.pdf"
    signed = tmp_path / "s.pdf"
    _ok(["placeholder", "--file", str(pdf_path), "--out", str(placeholdered), "--estimatedsize", "4096"])
    wrong = base64.b64encode(build_fake_cms(hashlib.sha512(b"other").digest())).decode("ascii")
    _ok(["sign", "--file", str(placeholdered), "--out", str(signed), "--signature", wrong])
    assert _ok(["verify", "--file", str(signed)]) == "INVALID"


def test_failed_sign_writes_nothing(tmp_path, pdf_path):
    out = tmp_path / "out.pdf"
    parsed = _err(["sign", "--file", str(pdf_path), "--out", str(out), "--signature", "AAEC"])
    assert parsed["error_type"] == "ArgumentError"
    assert not out.exists()


def test_signature_too_large(tmp_path, pdf_path):
    placeholdered = tmp_path / "p.pdf"
    _ok(["placeholder", "--file", str(pdf_path), "--out", str(placeholdered), "--estimatedsize", "8"])
    big = base64.b64encode(b"\x01" * 9).decode("ascii")
    parsed = _err(["sign", "--file", str(placeholdered), "--out", str(tmp_path / "s.pdf"), "--signature", big])
    assert parsed["error_type"] == "SignatureTooLargeError"


# ── main ────────────────────────────────────────────────────────────


def test_main_success_goes_to_stdout(capsys):
    main(["version"])
    captured = capsys.readouterr()
    assert captured.out == VERSION_TEXT + "\n"
    assert captured.err == ""


def test_main_error_goes_to_stderr(capsys, tmp_path):
    main(["digest", "--file", str(tmp_path / "absent.pdf")])
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("STATUS=ERROR\nERROR_TYPE=DocumentError\n")


def test_build_parser_repeated_flags():
    args = build_parser().parse_args(["--crl", "a", "--crl", "b", "--ocsp", "c"])
    assert args.crl == ["a", "b"]
    assert args.ocsp == ["c"]
    assert args.certlevel == 0
