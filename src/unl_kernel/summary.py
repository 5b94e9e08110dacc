"""
Summary utilities for human-readable inspection.

Renders verification and comparison results as plain text lines without
touching the results themselves. ``styled_line`` colours the status marks
for the console.
"""

from typing import Any

from rich.text import Text

from .codec import hex_to_base58
from .compare import Comparison
from .epoch import format_network_time
from .errors import DecodeError, SignatureStatus
from .verify import DocumentVerification, EnvelopeVerification, ValidatorVerification


_MARKS = {
    SignatureStatus.VALID: "✓",
    SignatureStatus.INVALID: "✗",
    SignatureStatus.NOT_CHECKED: "-",
}

_MARK_STYLES = {
    "✓": "bold green",
    "✗": "bold red",
}


def status_mark(status: SignatureStatus) -> str:
    return _MARKS[status]


def styled_line(line: str) -> Text:
    """A rich ``Text`` of ``line`` with VALID and INVALID marks coloured."""
    text = Text(line)
    for mark, style in _MARK_STYLES.items():
        text.highlight_words([mark], style=style)
    return text


def verification_summary(verification: DocumentVerification) -> dict[str, Any]:
    """
    Extract a summary of a verified document.

    Returns:
        Dict with version, sequence, validator_count, expiration, and the
        manifest / blob statuses of the primary blob
    """
    primary = verification.primary
    blob = verification.primary_blob
    return {
        "version": verification.document.version,
        "blob_count": len(verification.envelopes),
        "sequence": blob.sequence,
        "validator_count": len(blob.validators),
        "expiration": format_network_time(blob.expiration),
        "effective": format_network_time(blob.effective) if blob.effective is not None else None,
        "manifest_status": verification.manifest_status.value,
        "blob_status": primary.signature_status.value,
        "public_key_matches": verification.public_key_error is None,
        "valid": verification.valid,
    }


def _node_key(public_key_hex: str) -> str:
    try:
        return hex_to_base58(public_key_hex)
    except DecodeError:
        return "?"


def format_validator_line(result: ValidatorVerification) -> str:
    key = result.validator.validation_public_key
    if result.decoded_manifest is None:
        reason = result.error.message if result.error else "no manifest"
        return f"Validator: {key} | manifest undecodable: {reason}"
    return (
        f"Validator: {key} ({_node_key(key)}) | "
        f"Master: {status_mark(result.master_status)}, "
        f"Signing: {status_mark(result.signing_status)} | "
        f"{result.decoded_manifest.domain or ''}"
    )


def format_envelope_header(verification: DocumentVerification, envelope: EnvelopeVerification) -> str:
    if envelope.blob is None:
        reason = envelope.error.message if envelope.error else "undecodable"
        return f"Blob {envelope.index + 1}: {reason}"
    blob = envelope.blob
    line = (
        f"There are {len(blob.validators)} validators in this UNL. "
        f"Sequence is: {blob.sequence} | "
        f"Manifest: {status_mark(verification.manifest_status)} | "
        f"UNL: {status_mark(envelope.signature_status)} | "
        f"Expires: {format_network_time(blob.expiration)}"
    )
    if blob.effective is not None:
        line += f" | Effective: {format_network_time(blob.effective)}"
    return line


def format_verification(verification: DocumentVerification) -> list[str]:
    """One header per blob followed by one line per validator."""
    lines: list[str] = []
    if verification.public_key_error is not None:
        lines.append(f"Publisher key: ✗ | {verification.public_key_error.message}")
    for envelope in verification.envelopes:
        lines.append("")
        lines.append(format_envelope_header(verification, envelope))
        lines.append("")
        lines.extend(format_validator_line(v) for v in envelope.validators)
    return lines


def format_comparison(comparison: Comparison, label_a: str, label_b: str) -> list[str]:
    """
    Render a comparison from both sides: ``+`` present only on that side,
    ``-`` missing from that side.
    """
    if comparison.equal:
        return [f"Both UNLs have the same validators ({comparison.count_a})"]

    def entries(prefix: str, items) -> list[str]:
        return [f"{prefix}{e.master_public_key} {e.domain or ''}".rstrip() for e in items]

    return [
        "",
        f" {label_a} ({comparison.count_a})",
        *entries("+", comparison.removed),
        *entries("-", comparison.added),
        "",
        f" {label_b} ({comparison.count_b})",
        *entries("+", comparison.added),
        *entries("-", comparison.removed),
    ]
