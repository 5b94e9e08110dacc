"""
Offline verification of validator list documents.

Walks a loaded document through

    Loaded -> ManifestDecoded -> ManifestVerified
           -> BlobDecoded -> BlobVerified -> ValidatorsVerified

Structural failures raise (an undecodable top-level manifest, or every
blob envelope undecodable). Signature outcomes are data: every check
yields a SignatureStatus and the caller sees exactly which ones failed.
The document itself is never modified.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from .crypto import verify
from .document import Blob, BlobEnvelope, ListDocument, Validator
from .errors import (
    DecodeError,
    ErrorCode,
    SignatureStatus,
    VerificationError,
)
from .manifest import Manifest, canonical_payload, decode_manifest

logger = logging.getLogger(__name__)


@dataclass
class ValidatorVerification:
    """Manifest checks for one validator entry."""
    validator: Validator
    decoded_manifest: Manifest | None = None
    master_status: SignatureStatus = SignatureStatus.NOT_CHECKED
    signing_status: SignatureStatus = SignatureStatus.NOT_CHECKED
    error: VerificationError | None = None

    @property
    def valid(self) -> bool:
        return (
            self.master_status == SignatureStatus.VALID
            and self.signing_status == SignatureStatus.VALID
        )

    def to_dict(self) -> dict[str, Any]:
        manifest = self.decoded_manifest
        return {
            "validation_public_key": self.validator.validation_public_key,
            "master_public_key": manifest.master_key_hex if manifest else None,
            "domain": manifest.domain if manifest else None,
            "master_status": self.master_status.value,
            "signing_status": self.signing_status.value,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class EnvelopeVerification:
    """Decode and signature outcome for one blob envelope."""
    index: int
    envelope: BlobEnvelope
    blob: Blob | None = None
    signature_status: SignatureStatus = SignatureStatus.NOT_CHECKED
    validators: list[ValidatorVerification] = field(default_factory=list)
    error: VerificationError | None = None

    @property
    def decoded(self) -> bool:
        return self.blob is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "sequence": self.blob.sequence if self.blob else None,
            "expiration": self.blob.expiration if self.blob else None,
            "effective": self.blob.effective if self.blob else None,
            "signature_status": self.signature_status.value,
            "validators": [v.to_dict() for v in self.validators],
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class DocumentVerification:
    """
    Verification results attached alongside (not inside) a document.
    """
    document: ListDocument
    manifest: Manifest
    manifest_status: SignatureStatus = SignatureStatus.NOT_CHECKED
    manifest_master_status: SignatureStatus = SignatureStatus.NOT_CHECKED
    public_key_error: VerificationError | None = None
    envelopes: list[EnvelopeVerification] = field(default_factory=list)

    @property
    def primary(self) -> EnvelopeVerification:
        """First envelope that decoded (at least one always has)."""
        for envelope in self.envelopes:
            if envelope.decoded:
                return envelope
        raise DecodeError("document has no decodable blob")

    @property
    def primary_blob(self) -> Blob:
        blob = self.primary.blob
        if blob is None:
            raise DecodeError("document has no decodable blob")
        return blob

    @property
    def errors(self) -> list[VerificationError]:
        collected: list[VerificationError] = []
        if self.public_key_error:
            collected.append(self.public_key_error)
        for envelope in self.envelopes:
            if envelope.error:
                collected.append(envelope.error)
            collected.extend(v.error for v in envelope.validators if v.error)
        return collected

    @property
    def valid(self) -> bool:
        """True only when every check ran and passed."""
        if self.public_key_error is not None:
            return False
        if self.manifest_status != SignatureStatus.VALID:
            return False
        if self.manifest_master_status != SignatureStatus.VALID:
            return False
        for envelope in self.envelopes:
            if envelope.signature_status != SignatureStatus.VALID:
                return False
            if not all(v.valid for v in envelope.validators):
                return False
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "version": self.document.version,
            "public_key": self.document.public_key,
            "manifest": {
                "sequence": self.manifest.sequence,
                "master_public_key": self.manifest.master_key_hex,
                "signing_public_key": self.manifest.signing_key_hex,
                "domain": self.manifest.domain,
                "signature_status": self.manifest_status.value,
                "master_signature_status": self.manifest_master_status.value,
            },
            "envelopes": [e.to_dict() for e in self.envelopes],
            "errors": [e.to_dict() for e in self.errors],
        }


def verify_manifest_signatures(manifest: Manifest) -> tuple[SignatureStatus, SignatureStatus]:
    """
    Check both signatures of a manifest over its canonical payload.

    Returns:
        (master_status, signing_status)
    """
    payload = canonical_payload(manifest)
    master_ok = verify(manifest.master_key_hex, payload, manifest.master_signature_hex)
    signing_ok = verify(manifest.signing_key_hex, payload, manifest.signature_hex)
    return SignatureStatus.from_bool(master_ok), SignatureStatus.from_bool(signing_ok)


def verify_validator(validator: Validator) -> ValidatorVerification:
    """Decode a validator's manifest and run its two independent checks."""
    result = ValidatorVerification(validator=validator)
    try:
        manifest = validator.decode()
    except DecodeError as exc:
        logger.debug("validator %s manifest undecodable: %s", validator.validation_public_key, exc)
        result.error = VerificationError(
            code=ErrorCode.MANIFEST_UNDECODABLE,
            message=f"Could not decode manifest for validator {validator.validation_public_key}: {exc.message}",
            details={"validation_public_key": validator.validation_public_key},
        )
        return result

    result.decoded_manifest = manifest
    result.master_status, result.signing_status = verify_manifest_signatures(manifest)
    return result


def verify_envelope(index: int, envelope: BlobEnvelope, signing_key_hex: str) -> EnvelopeVerification:
    """
    Decode one blob envelope and verify its signature and validators.

    The signature covers the decoded blob bytes exactly as they were
    base64-encoded, not a re-serialization.
    """
    result = EnvelopeVerification(index=index, envelope=envelope)
    try:
        raw = envelope.raw_blob()
        blob = Blob.from_bytes(raw)
    except DecodeError as exc:
        logger.debug("blob envelope %d undecodable: %s", index, exc)
        result.error = VerificationError(
            code=ErrorCode.BLOB_UNDECODABLE,
            message=f"Could not decode blob {index}: {exc.message}",
            details={"index": index},
        )
        return result

    result.blob = blob
    result.signature_status = SignatureStatus.from_bool(
        verify(signing_key_hex, raw, envelope.signature)
    )
    if result.signature_status == SignatureStatus.INVALID:
        result.error = VerificationError(
            code=ErrorCode.SIGNATURE_INVALID,
            message=f"Blob {index} signature verification failed",
            details={"index": index, "sequence": blob.sequence},
        )

    result.validators = [verify_validator(v) for v in blob.validators]
    return result


def verify_document(document: ListDocument) -> DocumentVerification:
    """
    Run the full verification pipeline over a parsed document.

    Args:
        document: ListDocumentV1 or ListDocumentV2

    Returns:
        DocumentVerification with a status for every signature check

    Raises:
        DecodeError: If the top-level manifest is undecodable or no blob
            envelope decodes
    """
    manifest = decode_manifest(document.manifest)
    logger.debug("decoded publisher manifest sequence=%d", manifest.sequence)

    result = DocumentVerification(document=document, manifest=manifest)
    result.manifest_master_status, result.manifest_status = verify_manifest_signatures(manifest)
    if document.public_key.upper() != manifest.master_key_hex:
        logger.debug("document public key %s is not the manifest master key", document.public_key)
        result.public_key_error = VerificationError(
            code=ErrorCode.PUBLIC_KEY_MISMATCH,
            message="Document public key does not match the publisher manifest master key",
            details={
                "public_key": document.public_key,
                "master_public_key": manifest.master_key_hex,
            },
        )
    logger.debug("publisher manifest signature: %s", result.manifest_status.value)

    signing_key_hex = manifest.signing_key_hex
    result.envelopes = [
        verify_envelope(idx, envelope, signing_key_hex)
        for idx, envelope in enumerate(document.envelopes)
    ]

    if not any(e.decoded for e in result.envelopes):
        raise DecodeError(
            "Could not decode any blob in the document",
            {"errors": [e.error.to_dict() for e in result.envelopes if e.error]},
        )

    logger.debug(
        "verified %d envelope(s), valid=%s",
        len(result.envelopes),
        result.valid,
    )
    return result
