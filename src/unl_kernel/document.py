"""
Validator list document model.

A list document is either version 1 (one blob/signature pair inline) or
version 2 (an ordered list of independently signed blob envelopes). The
two shapes are separate types; ``ListDocument`` is their union and
``parse_document`` is the only way to build one from JSON.
"""

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping, Union

from .canonical import canonical_bytes
from .codec import b64decode
from .errors import DecodeError, UnsupportedVersion
from .manifest import Manifest, decode_manifest


@dataclass
class Validator:
    """
    One trusted validator inside a blob.

    ``decoded_manifest`` is filled lazily by ``decode()`` and is never
    serialized.
    """
    validation_public_key: str
    manifest: str | None
    decoded_manifest: Manifest | None = field(default=None, compare=False, repr=False)

    def decode(self) -> Manifest:
        """Decode (once) and return this validator's manifest."""
        if self.decoded_manifest is None:
            if not self.manifest:
                raise DecodeError(
                    "validator has no manifest",
                    {"validation_public_key": self.validation_public_key},
                )
            self.decoded_manifest = decode_manifest(self.manifest)
        return self.decoded_manifest

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"validation_public_key": self.validation_public_key}
        if self.manifest is not None:
            data["manifest"] = self.manifest
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Validator":
        if not isinstance(data, Mapping):
            raise DecodeError("validator entry must be an object")
        key = data.get("validation_public_key")
        manifest = data.get("manifest")
        if not isinstance(key, str):
            raise DecodeError("validator entry missing validation_public_key")
        if manifest is not None and not isinstance(manifest, str):
            raise DecodeError("validator manifest must be a string")
        return cls(validation_public_key=key, manifest=manifest)


@dataclass
class Blob:
    """
    The signed payload: sequence, validity window and validators.

    ``expiration`` and ``effective`` are network epoch seconds.
    """
    sequence: int
    expiration: int
    validators: list[Validator] = field(default_factory=list)
    effective: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "sequence": self.sequence,
            "expiration": self.expiration,
        }
        if self.effective is not None:
            data["effective"] = self.effective
        data["validators"] = [v.to_dict() for v in self.validators]
        return data

    def to_bytes(self) -> bytes:
        """Canonical bytes; exactly what gets signed and base64-encoded."""
        return canonical_bytes(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> "Blob":
        if not isinstance(data, Mapping):
            raise DecodeError("blob must be a JSON object")

        sequence = data.get("sequence")
        expiration = data.get("expiration")
        effective = data.get("effective")
        validators = data.get("validators")

        for name, value in (("sequence", sequence), ("expiration", expiration)):
            if not _is_int(value):
                raise DecodeError(f"blob field {name} must be an integer", {"field": name})
        if effective is not None and not _is_int(effective):
            raise DecodeError("blob field effective must be an integer", {"field": "effective"})
        if not isinstance(validators, list):
            raise DecodeError("blob field validators must be an array", {"field": "validators"})

        return cls(
            sequence=sequence,
            expiration=expiration,
            validators=[Validator.from_dict(v) for v in validators],
            effective=effective,
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Blob":
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DecodeError(f"blob is not valid JSON: {exc}")
        return cls.from_dict(data)


@dataclass(frozen=True)
class BlobEnvelope:
    """A base64 blob and the hex signature over its decoded bytes."""
    blob: str
    signature: str

    def raw_blob(self) -> bytes:
        return b64decode(self.blob)

    def decode(self) -> Blob:
        return Blob.from_bytes(self.raw_blob())

    def to_dict(self) -> dict[str, Any]:
        return {"signature": self.signature, "blob": self.blob}


@dataclass(frozen=True)
class ListDocumentV1:
    public_key: str
    manifest: str
    blob: str
    signature: str

    version: ClassVar[int] = 1

    @property
    def envelopes(self) -> tuple[BlobEnvelope, ...]:
        return (BlobEnvelope(blob=self.blob, signature=self.signature),)

    def to_dict(self) -> dict[str, Any]:
        return {
            "public_key": self.public_key,
            "manifest": self.manifest,
            "blob": self.blob,
            "signature": self.signature,
            "version": self.version,
        }


@dataclass(frozen=True)
class ListDocumentV2:
    public_key: str
    manifest: str
    blobs_v2: tuple[BlobEnvelope, ...]

    version: ClassVar[int] = 2

    @property
    def envelopes(self) -> tuple[BlobEnvelope, ...]:
        return self.blobs_v2

    def to_dict(self) -> dict[str, Any]:
        return {
            "public_key": self.public_key,
            "manifest": self.manifest,
            "blobs_v2": [e.to_dict() for e in self.blobs_v2],
            "version": self.version,
        }


ListDocument = Union[ListDocumentV1, ListDocumentV2]

SUPPORTED_VERSIONS = (1, 2)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_str(data: Mapping[str, Any], key: str, where: str = "document") -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise DecodeError(f"{where} missing required field: {key}", {"field": key})
    return value


def parse_document(payload: str | bytes | Mapping[str, Any]) -> ListDocument:
    """
    Parse a list document and dispatch on its version.

    Args:
        payload: Raw JSON text/bytes or an already-parsed mapping

    Returns:
        ListDocumentV1 (``version`` absent or 1) or ListDocumentV2 (2)

    Raises:
        DecodeError: If the JSON is malformed or fields are missing or
            contradict the version
        UnsupportedVersion: If ``version`` is any other value
    """
    if isinstance(payload, (str, bytes)):
        try:
            data = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DecodeError(f"document is not valid JSON: {exc}")
    else:
        data = payload

    if not isinstance(data, Mapping):
        raise DecodeError("document must be a JSON object")

    version = data.get("version", 1)
    if not _is_int(version) or version not in SUPPORTED_VERSIONS:
        raise UnsupportedVersion(
            f"Unsupported document version: {version!r}. Supported: 1, 2",
            {"version": version, "supported": list(SUPPORTED_VERSIONS)},
        )

    public_key = _require_str(data, "public_key")
    manifest = _require_str(data, "manifest")

    if version == 1:
        if "blobs_v2" in data:
            raise DecodeError("version 1 document must not contain blobs_v2")
        return ListDocumentV1(
            public_key=public_key,
            manifest=manifest,
            blob=_require_str(data, "blob"),
            signature=_require_str(data, "signature"),
        )

    if "blob" in data or "signature" in data:
        raise DecodeError("version 2 document must not contain a top-level blob or signature")
    raw_envelopes = data.get("blobs_v2")
    if not isinstance(raw_envelopes, list) or not raw_envelopes:
        raise DecodeError("version 2 document requires a non-empty blobs_v2 array")

    envelopes = []
    for idx, entry in enumerate(raw_envelopes):
        if not isinstance(entry, Mapping):
            raise DecodeError(f"blobs_v2[{idx}] must be an object", {"index": idx})
        envelopes.append(BlobEnvelope(
            blob=_require_str(entry, "blob", f"blobs_v2[{idx}]"),
            signature=_require_str(entry, "signature", f"blobs_v2[{idx}]"),
        ))

    return ListDocumentV2(public_key=public_key, manifest=manifest, blobs_v2=tuple(envelopes))
