"""
Validator list signing.

Builds a blob from candidate validator manifests, serializes it
canonically, signs the exact bytes with the publisher's signing key and
assembles a document. The output always verifies: ``verify_document``
reports VALID for the publisher manifest and for the new blob.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .codec import b64encode
from .crypto import sign, verify
from .document import (
    Blob,
    BlobEnvelope,
    ListDocument,
    ListDocumentV1,
    ListDocumentV2,
    Validator,
)
from .epoch import as_utc, network_time_from_datetime
from .errors import ParameterError, SecretNotFound
from .keystore import KeyPair, SecretProvider
from .manifest import decode_manifest

logger = logging.getLogger(__name__)

MAX_SEQUENCE = 0xFFFFFFFF
MAX_EXPIRATION_DAYS = 0xFFFF


@dataclass
class SigningRequest:
    """
    Everything needed to produce a new document except the key pair.

    ``effective`` is required for version 2 and forbidden for version 1.
    ``prior_document`` (version 2 only) contributes its other blobs
    unchanged.
    """
    version: int
    manifest: str
    validator_manifests: list[str]
    sequence: int
    expiration_days: int
    effective: datetime | None = None
    prior_document: ListDocument | None = field(default=None, repr=False)

    def expiration_at(self, now: datetime) -> datetime:
        return as_utc(now) + timedelta(days=self.expiration_days)

    def validate_options(self, now: datetime, with_prior: bool = False) -> None:
        """
        Check every input that does not need the manifest list or the
        prior document loaded.

        Raises:
            ParameterError: On any missing or inconsistent option
        """
        if self.version not in (1, 2):
            raise ParameterError(f"version must be 1 or 2, got {self.version!r}")
        if not self.manifest:
            raise ParameterError("publisher manifest is required")
        if not 0 <= self.sequence <= MAX_SEQUENCE:
            raise ParameterError(f"sequence must fit in 32 bits, got {self.sequence}")
        if not 1 <= self.expiration_days <= MAX_EXPIRATION_DAYS:
            raise ParameterError(
                f"expiration_days must be between 1 and {MAX_EXPIRATION_DAYS}, got {self.expiration_days}"
            )

        if self.version == 1:
            if self.effective is not None:
                raise ParameterError("effective date is only valid for version 2")
            if with_prior:
                raise ParameterError("a prior document can only be carried into version 2")
            return

        if self.effective is None:
            raise ParameterError("version 2 requires an effective date")
        if as_utc(self.effective) >= self.expiration_at(now):
            raise ParameterError(
                "effective date must be before the expiration",
                {
                    "effective": self.effective.isoformat(),
                    "expiration": self.expiration_at(now).isoformat(),
                },
            )

    def validate(self, now: datetime) -> None:
        """
        Raises:
            ParameterError: On any missing or inconsistent input
        """
        self.validate_options(now, with_prior=self.prior_document is not None)
        if not self.validator_manifests:
            raise ParameterError("at least one validator manifest is required")
        if self.prior_document is not None and self.prior_document.version != 2:
            raise ParameterError("prior document must be version 2")


def build_validators(manifests: list[str]) -> list[Validator]:
    """
    Decode every candidate manifest and derive its validation key.

    Raises:
        MalformedManifest: If any manifest is undecodable (no member is
            ever dropped silently)
        ParameterError: If two manifests share a master key
    """
    validators: list[Validator] = []
    seen: set[str] = set()
    for manifest in manifests:
        decoded = decode_manifest(manifest)
        key = decoded.master_key_hex
        if key in seen:
            raise ParameterError(f"duplicate validator master key: {key}", {"master_public_key": key})
        seen.add(key)
        validators.append(Validator(validation_public_key=key, manifest=manifest))
    return validators


def _carried_envelopes(
    prior: ListDocument,
    publisher_key: str,
    sequence: int,
    keypair: KeyPair,
) -> list[tuple[int, BlobEnvelope]]:
    """
    Envelopes of ``prior`` to keep beside the new blob.

    Blob bytes are never changed. An envelope the current signing key
    does not verify (the signing key was rotated since it was published)
    is re-signed over the same bytes.
    """
    if prior.public_key.upper() != publisher_key:
        raise ParameterError(
            "prior document was published with a different key",
            {"expected": publisher_key, "actual": prior.public_key},
        )
    carried = []
    for envelope in prior.envelopes:
        raw = envelope.raw_blob()
        blob = Blob.from_bytes(raw)
        if blob.sequence == sequence:
            logger.info("replacing prior blob with sequence %d", sequence)
            continue
        if not verify(keypair.public_key, raw, envelope.signature):
            logger.info("re-signing prior blob sequence %d with the current signing key", blob.sequence)
            envelope = BlobEnvelope(
                blob=envelope.blob,
                signature=sign(keypair.public_key, keypair.private_key, raw),
            )
        carried.append((blob.sequence, envelope))
    return carried


def build_document(
    request: SigningRequest,
    keypair: KeyPair,
    now: datetime | None = None,
) -> ListDocument:
    """
    Build and sign a new list document.

    Args:
        request: Signing inputs
        keypair: Publisher signing key pair (hex); the public half must be
            the signing key of ``request.manifest``
        now: Reference time for the expiration (default: current UTC time)

    Returns:
        ListDocumentV1 or ListDocumentV2

    Raises:
        ParameterError: On invalid inputs or a key pair that does not match
            the publisher manifest
        DecodeError: If the publisher manifest, a validator manifest or a
            carried-forward blob is undecodable
        InvalidKey / UnsupportedAlgorithm: From the signer
    """
    now = as_utc(now or datetime.now(timezone.utc))
    request.validate(now)

    publisher = decode_manifest(request.manifest)
    if keypair.public_key.upper() != publisher.signing_key_hex:
        raise ParameterError(
            "key pair does not match the publisher manifest's signing key",
            {"manifest_signing_key": publisher.signing_key_hex},
        )

    blob = Blob(
        sequence=request.sequence,
        expiration=network_time_from_datetime(request.expiration_at(now)),
        validators=build_validators(request.validator_manifests),
        effective=network_time_from_datetime(request.effective) if request.version == 2 else None,
    )
    raw = blob.to_bytes()
    envelope = BlobEnvelope(
        blob=b64encode(raw),
        signature=sign(keypair.public_key, keypair.private_key, raw),
    )
    logger.info(
        "signed blob sequence=%d validators=%d version=%d",
        blob.sequence,
        len(blob.validators),
        request.version,
    )

    if request.version == 1:
        return ListDocumentV1(
            public_key=publisher.master_key_hex,
            manifest=request.manifest,
            blob=envelope.blob,
            signature=envelope.signature,
        )

    entries = [(blob.sequence, envelope)]
    if request.prior_document is not None:
        entries.extend(
            _carried_envelopes(request.prior_document, publisher.master_key_hex, blob.sequence, keypair)
        )
    entries.sort(key=lambda entry: entry[0])

    return ListDocumentV2(
        public_key=publisher.master_key_hex,
        manifest=request.manifest,
        blobs_v2=tuple(e for _, e in entries),
    )


async def sign_document(
    request: SigningRequest,
    provider: SecretProvider,
    secret_id: str,
    now: datetime | None = None,
) -> ListDocument:
    """
    Validate inputs, fetch the key pair, then build the document.

    Raises:
        ParameterError: Before any I/O if inputs are invalid
        SecretNotFound: If the provider has no secret ``secret_id``
    """
    now = now or datetime.now(timezone.utc)
    request.validate(now)

    keypair = await provider.get_secret(secret_id)
    if keypair is None:
        raise SecretNotFound(f"No secret was found: {secret_id}", {"secret_id": secret_id})

    return build_document(request, keypair, now)
