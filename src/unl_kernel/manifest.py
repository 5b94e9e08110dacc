"""
Manifest codec.

A manifest binds a long-lived master key to a rotatable signing key and
is signed by both. On the wire it is base64 text wrapping a serialized
object: a sequence of (field header, value) pairs sorted by
(type code, field code).

Field header:
    one byte ``type << 4 | field`` when both codes are < 16; a zero nibble
    means the code follows in its own byte (type byte first, then field).

Variable-length values carry a 1-3 byte length prefix:
    0-192        1 byte
    193-12480    2 bytes
    12481-918744 3 bytes

``canonical_payload`` is the only definition of the bytes a manifest
signature covers. Signer and verifier both call it.
"""

import struct
from dataclasses import dataclass, field
from enum import IntEnum

from .codec import b64decode, b64encode, bytes_to_hex, hex_to_base58
from .errors import DecodeError, MalformedManifest, ParameterError


# Hash prefix prepended to a manifest's signable fields ("MAN\0")
HASH_PREFIX_MANIFEST = b"MAN\x00"

MAX_VL_LENGTH = 918744


class FieldType(IntEnum):
    UINT16 = 1
    UINT32 = 2
    UINT64 = 3
    HASH128 = 4
    HASH256 = 5
    AMOUNT = 6
    BLOB = 7
    ACCOUNT_ID = 8
    UINT8 = 16
    HASH160 = 17
    VECTOR256 = 19


_FIXED_SIZES = {
    FieldType.UINT8: 1,
    FieldType.UINT16: 2,
    FieldType.UINT32: 4,
    FieldType.UINT64: 8,
    FieldType.HASH128: 16,
    FieldType.HASH160: 20,
    FieldType.HASH256: 32,
}

_LENGTH_PREFIXED = frozenset({FieldType.BLOB, FieldType.ACCOUNT_ID, FieldType.VECTOR256})


@dataclass(frozen=True)
class FieldId:
    """A registered manifest field."""
    type_code: int
    field_code: int
    name: str

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.type_code, self.field_code)


SEQUENCE = FieldId(FieldType.UINT32, 4, "Sequence")
PUBLIC_KEY = FieldId(FieldType.BLOB, 1, "PublicKey")
SIGNING_PUB_KEY = FieldId(FieldType.BLOB, 3, "SigningPubKey")
SIGNATURE = FieldId(FieldType.BLOB, 6, "Signature")
DOMAIN = FieldId(FieldType.BLOB, 7, "Domain")
MASTER_SIGNATURE = FieldId(FieldType.BLOB, 18, "MasterSignature")

FIELD_REGISTRY = {
    f.sort_key: f
    for f in (SEQUENCE, PUBLIC_KEY, SIGNING_PUB_KEY, SIGNATURE, DOMAIN, MASTER_SIGNATURE)
}

REQUIRED_FIELDS = (SEQUENCE, PUBLIC_KEY, SIGNING_PUB_KEY, SIGNATURE, MASTER_SIGNATURE)


@dataclass(frozen=True)
class RawField:
    """An unregistered field kept verbatim (``value`` includes any length prefix)."""
    type_code: int
    field_code: int
    value: bytes


@dataclass(frozen=True)
class Manifest:
    """A decoded manifest. Keys and signatures are raw bytes."""
    sequence: int
    master_public_key: bytes
    signing_public_key: bytes
    signature: bytes = b""
    master_signature: bytes = b""
    domain: str | None = None
    extra_fields: tuple[RawField, ...] = field(default=(), repr=False)

    @property
    def master_key_hex(self) -> str:
        return bytes_to_hex(self.master_public_key)

    @property
    def signing_key_hex(self) -> str:
        return bytes_to_hex(self.signing_public_key)

    @property
    def master_key_base58(self) -> str:
        return hex_to_base58(self.master_key_hex)

    @property
    def signing_key_base58(self) -> str:
        return hex_to_base58(self.signing_key_hex)

    @property
    def signature_hex(self) -> str:
        return bytes_to_hex(self.signature)

    @property
    def master_signature_hex(self) -> str:
        return bytes_to_hex(self.master_signature)


# ---------------------------------------------------------------------------
# Encoding primitives
# ---------------------------------------------------------------------------

def encode_field_header(type_code: int, field_code: int) -> bytes:
    if type_code < 16:
        if field_code < 16:
            return bytes([(type_code << 4) | field_code])
        return bytes([type_code << 4, field_code])
    if field_code < 16:
        return bytes([field_code, type_code])
    return bytes([0, type_code, field_code])


def encode_vl_length(length: int) -> bytes:
    if length < 0 or length > MAX_VL_LENGTH:
        raise ParameterError(f"variable-length field too long: {length}")
    if length <= 192:
        return bytes([length])
    if length <= 12480:
        length -= 193
        return bytes([193 + (length >> 8), length & 0xFF])
    length -= 12481
    return bytes([241 + (length >> 16), (length >> 8) & 0xFF, length & 0xFF])


class _Reader:
    """Bounds-checked cursor over a manifest's bytes."""

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def take(self, count: int) -> bytes:
        if count > len(self.data) - self.pos:
            raise MalformedManifest(
                f"field length {count} exceeds remaining input",
                {"offset": self.pos, "remaining": len(self.data) - self.pos},
            )
        chunk = self.data[self.pos:self.pos + count]
        self.pos += count
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]

    def field_header(self) -> tuple[int, int]:
        first = self.byte()
        type_code = first >> 4
        field_code = first & 0x0F
        if type_code == 0:
            type_code = self.byte()
        if field_code == 0:
            field_code = self.byte()
        return type_code, field_code

    def vl_length(self) -> int:
        b1 = self.byte()
        if b1 <= 192:
            return b1
        if b1 <= 240:
            b2 = self.byte()
            return 193 + (b1 - 193) * 256 + b2
        if b1 <= 254:
            b2, b3 = self.byte(), self.byte()
            return 12481 + (b1 - 241) * 65536 + b2 * 256 + b3
        raise MalformedManifest("invalid variable-length prefix", {"offset": self.pos - 1})

    def value(self, type_code: int) -> bytes:
        """Read one value of ``type_code``; returns the payload without prefix."""
        if type_code in _FIXED_SIZES:
            return self.take(_FIXED_SIZES[type_code])
        if type_code == FieldType.AMOUNT:
            if self.at_end():
                raise MalformedManifest("truncated amount field", {"offset": self.pos})
            # Issued amounts set the high bit and carry currency + issuer
            return self.take(48 if self.data[self.pos] & 0x80 else 8)
        if type_code in _LENGTH_PREFIXED:
            return self.take(self.vl_length())
        raise MalformedManifest(
            f"cannot skip field of type {type_code}",
            {"type_code": type_code, "offset": self.pos},
        )


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------

def decode_manifest(wire_text: str) -> Manifest:
    """
    Decode a base64 manifest string.

    Args:
        wire_text: Base64 manifest as published in documents and tokens

    Returns:
        Decoded Manifest

    Raises:
        MalformedManifest: If the text is not base64, a required field is
            missing or duplicated, a length overruns the input, or the
            domain is not UTF-8
    """
    try:
        data = b64decode(wire_text)
    except DecodeError as exc:
        raise MalformedManifest(f"manifest is not valid base64: {exc.message}")
    return parse_manifest(data)


def parse_manifest(data: bytes) -> Manifest:
    """Parse the binary manifest record."""
    reader = _Reader(data)
    known: dict[FieldId, bytes] = {}
    extras: list[RawField] = []

    while not reader.at_end():
        type_code, field_code = reader.field_header()
        start = reader.pos
        value = reader.value(type_code)

        field_id = FIELD_REGISTRY.get((type_code, field_code))
        if field_id is None:
            extras.append(RawField(type_code, field_code, data[start:reader.pos]))
            continue
        if field_id in known:
            raise MalformedManifest(
                f"duplicate field: {field_id.name}",
                {"field": field_id.name},
            )
        known[field_id] = value

    missing = [f.name for f in REQUIRED_FIELDS if f not in known]
    if missing:
        raise MalformedManifest(
            f"manifest missing required field(s): {', '.join(missing)}",
            {"missing": missing},
        )

    domain = None
    if DOMAIN in known:
        try:
            domain = known[DOMAIN].decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedManifest("manifest domain is not valid UTF-8")

    return Manifest(
        sequence=struct.unpack(">I", known[SEQUENCE])[0],
        master_public_key=known[PUBLIC_KEY],
        signing_public_key=known[SIGNING_PUB_KEY],
        signature=known[SIGNATURE],
        master_signature=known[MASTER_SIGNATURE],
        domain=domain,
        extra_fields=tuple(extras),
    )


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------

def _serialize(manifest: Manifest, include_signatures: bool) -> bytes:
    if not 0 <= manifest.sequence <= 0xFFFFFFFF:
        raise ParameterError(f"manifest sequence out of range: {manifest.sequence}")

    entries: list[tuple[tuple[int, int], bytes]] = []

    def add(field_id: FieldId, encoded_value: bytes) -> None:
        header = encode_field_header(field_id.type_code, field_id.field_code)
        entries.append((field_id.sort_key, header + encoded_value))

    def add_blob(field_id: FieldId, value: bytes) -> None:
        add(field_id, encode_vl_length(len(value)) + value)

    add(SEQUENCE, struct.pack(">I", manifest.sequence))
    add_blob(PUBLIC_KEY, manifest.master_public_key)
    add_blob(SIGNING_PUB_KEY, manifest.signing_public_key)
    if manifest.domain is not None:
        add_blob(DOMAIN, manifest.domain.encode("utf-8"))
    if include_signatures:
        add_blob(SIGNATURE, manifest.signature)
        add_blob(MASTER_SIGNATURE, manifest.master_signature)

    for extra in manifest.extra_fields:
        header = encode_field_header(extra.type_code, extra.field_code)
        entries.append(((extra.type_code, extra.field_code), header + extra.value))

    entries.sort(key=lambda entry: entry[0])
    return b"".join(encoded for _, encoded in entries)


def canonical_payload(manifest: Manifest) -> bytes:
    """
    Bytes covered by both manifest signatures.

    The manifest hash prefix followed by every field except Signature and
    MasterSignature, in canonical (type, field) order.
    """
    return HASH_PREFIX_MANIFEST + _serialize(manifest, include_signatures=False)


def serialize_manifest(manifest: Manifest) -> bytes:
    """Full binary record including both signatures."""
    return _serialize(manifest, include_signatures=True)


def encode_manifest(manifest: Manifest) -> str:
    """Wire (base64) form of a manifest; inverse of ``decode_manifest``."""
    return b64encode(serialize_manifest(manifest))
