"""Text rendering tests."""

from dataclasses import replace

from factories import ed25519_keypair, flip_hex_byte, make_document
from unl_kernel.compare import compare_blobs
from unl_kernel.document import Blob, Validator
from unl_kernel.errors import SignatureStatus
from unl_kernel.summary import (
    format_comparison,
    format_validator_line,
    format_verification,
    status_mark,
    styled_line,
    verification_summary,
)
from unl_kernel.verify import verify_document, verify_validator


def _blob(manifests):
    return Blob(sequence=1, expiration=0, validators=[Validator("", m) for m in manifests])


def test_status_marks():
    assert status_mark(SignatureStatus.VALID) == "✓"
    assert status_mark(SignatureStatus.INVALID) == "✗"
    assert status_mark(SignatureStatus.NOT_CHECKED) == "-"


def test_summary(publisher, validator_manifests):
    summary = verification_summary(verify_document(make_document(publisher, validator_manifests, version=2, sequence=8)))

    assert summary["version"] == 2
    assert summary["sequence"] == 8
    assert summary["validator_count"] == 3
    assert summary["effective"] == "2026-01-01 00:00:00 UTC"
    assert summary["expiration"] == "2026-01-31 00:00:00 UTC"
    assert summary["valid"] is True


def test_verification_lines(publisher, validator_manifests):
    document = make_document(publisher, validator_manifests)
    lines = format_verification(verify_document(replace(document, signature=flip_hex_byte(document.signature, 10))))

    header = next(line for line in lines if line.startswith("There are"))
    assert "Manifest: ✓" in header
    assert "UNL: ✗" in header
    validator_lines = [line for line in lines if line.startswith("Validator:")]
    assert len(validator_lines) == 3
    assert validator_lines[0].endswith("validator0.example")
    assert "(n" in validator_lines[0]


def test_undecodable_validator_line():
    line = format_validator_line(verify_validator(Validator(validation_public_key="ED00", manifest=None)))
    assert "manifest undecodable" in line


def test_equal_comparison(validator_manifests):
    comparison = compare_blobs(_blob(validator_manifests), _blob(validator_manifests))
    assert format_comparison(comparison, "a", "b") == ["Both UNLs have the same validators (3)"]


def test_different_comparison(validator_manifests):
    comparison = compare_blobs(_blob(validator_manifests[:2]), _blob(validator_manifests[1:]))
    lines = format_comparison(comparison, "first.json", "second.json")
    removed = comparison.removed[0].master_public_key
    added = comparison.added[0].master_public_key

    a_index = lines.index(" first.json (2)")
    b_index = lines.index(" second.json (2)")
    assert lines[a_index + 1] == f"+{removed} validator0.example"
    assert lines[a_index + 2] == f"-{added} validator2.example"
    assert lines[b_index + 1] == f"+{added} validator2.example"
    assert lines[b_index + 2] == f"-{removed} validator0.example"


def test_styled_line_colours_marks():
    text = styled_line("Manifest: ✓ | UNL: ✗ | Master: -")

    assert text.plain == "Manifest: ✓ | UNL: ✗ | Master: -"
    styles = {text.plain[span.start:span.end]: str(span.style) for span in text.spans}
    assert styles == {"✓": "bold green", "✗": "bold red"}


def test_foreign_public_key_line(publisher, validator_manifests):
    document = replace(make_document(publisher, validator_manifests), public_key=ed25519_keypair().public_key)
    verification = verify_document(document)

    assert format_verification(verification)[0].startswith("Publisher key: ✗")
    assert verification_summary(verification)["public_key_matches"] is False
