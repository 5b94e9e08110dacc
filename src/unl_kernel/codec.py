"""
Checksummed base58, hex and base64 conversions.

Pure functions only. Malformed input always raises ``DecodeError``;
nothing else escapes these helpers.
"""

import base64
import binascii
import hashlib
from enum import IntEnum

from .errors import DecodeError


ALPHABET = b"rpshnaf39wBUDNEGHJKLM4PQRST7VWXYZ2bcdeCg65jkm8oFqi1tuvAxyz"
_ALPHABET_INDEX = {char: idx for idx, char in enumerate(ALPHABET)}

CHECKSUM_LENGTH = 4


class NetworkTag(IntEnum):
    """Leading type byte of a checksummed encoding."""
    ACCOUNT_ID = 0
    NODE_PUBLIC = 28
    NODE_PRIVATE = 32
    FAMILY_SEED = 33
    ACCOUNT_PUBLIC = 35

    @property
    def payload_size(self) -> int:
        return _PAYLOAD_SIZES[self]


_PAYLOAD_SIZES = {
    NetworkTag.ACCOUNT_ID: 20,
    NetworkTag.NODE_PUBLIC: 33,
    NetworkTag.NODE_PRIVATE: 32,
    NetworkTag.FAMILY_SEED: 16,
    NetworkTag.ACCOUNT_PUBLIC: 33,
}


def _checksum(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()[:CHECKSUM_LENGTH]


def b58encode(data: bytes) -> str:
    """Encode raw bytes with the network's base58 alphabet (no checksum)."""
    n_pad = 0
    for byte in data:
        if byte != 0:
            break
        n_pad += 1

    num = int.from_bytes(data, "big")
    out = bytearray()
    while num > 0:
        num, rem = divmod(num, 58)
        out.append(ALPHABET[rem])
    out.extend(ALPHABET[0:1] * n_pad)
    out.reverse()
    return out.decode("ascii")


def b58decode(text: str) -> bytes:
    """Decode base58 text (no checksum). Raises DecodeError on bad characters."""
    if not isinstance(text, str):
        raise DecodeError("base58 input must be a string")
    try:
        raw = text.encode("ascii")
    except UnicodeEncodeError:
        raise DecodeError("invalid base58 character")

    num = 0
    for char in raw:
        if char not in _ALPHABET_INDEX:
            raise DecodeError(f"invalid base58 character: {chr(char)!r}")
        num = num * 58 + _ALPHABET_INDEX[char]

    n_pad = 0
    for char in raw:
        if char != ALPHABET[0]:
            break
        n_pad += 1

    body = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    return b"\x00" * n_pad + body


def encode_checked(tag: NetworkTag, data: bytes) -> str:
    """
    Encode ``data`` prefixed with ``tag`` and a 4-byte double-SHA256 checksum.

    Raises:
        DecodeError: If ``data`` is not the size the tag requires
    """
    tag = NetworkTag(tag)
    if len(data) != tag.payload_size:
        raise DecodeError(
            f"{tag.name} payload must be {tag.payload_size} bytes, got {len(data)}",
            {"tag": tag.name, "length": len(data)},
        )
    payload = bytes([tag]) + bytes(data)
    return b58encode(payload + _checksum(payload))


def decode_checked(tag: NetworkTag, text: str) -> bytes:
    """
    Decode checksummed base58 text and return the payload without its tag.

    Raises:
        DecodeError: On a bad character, checksum mismatch, wrong tag or
            a payload length inconsistent with the tag
    """
    tag = NetworkTag(tag)
    raw = b58decode(text)
    if len(raw) < 1 + CHECKSUM_LENGTH:
        raise DecodeError("checksummed input is too short", {"length": len(raw)})

    payload, checksum = raw[:-CHECKSUM_LENGTH], raw[-CHECKSUM_LENGTH:]
    if _checksum(payload) != checksum:
        raise DecodeError("checksum mismatch", {"tag": tag.name})
    if payload[0] != tag:
        raise DecodeError(
            f"expected {tag.name} tag {int(tag)}, got {payload[0]}",
            {"tag": tag.name, "actual": payload[0]},
        )

    data = payload[1:]
    if len(data) != tag.payload_size:
        raise DecodeError(
            f"{tag.name} payload must be {tag.payload_size} bytes, got {len(data)}",
            {"tag": tag.name, "length": len(data)},
        )
    return data


def bytes_to_hex(data: bytes) -> str:
    return data.hex().upper()


def hex_to_bytes(text: str) -> bytes:
    """Parse hex text of either case. Raises DecodeError on malformed input."""
    if not isinstance(text, str):
        raise DecodeError("hex input must be a string")
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise DecodeError("invalid hex string", {"value": text[:16]})


def hex_to_base58(public_key_hex: str) -> str:
    """Render a hex node public key in its checksummed base58 form."""
    return encode_checked(NetworkTag.NODE_PUBLIC, hex_to_bytes(public_key_hex))


def base58_to_hex(public_key: str) -> str:
    """Render a base58 node public key as upper-case hex."""
    return bytes_to_hex(decode_checked(NetworkTag.NODE_PUBLIC, public_key))


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(text: str) -> bytes:
    """Strict standard-alphabet base64 decode. Raises DecodeError."""
    if not isinstance(text, str):
        raise DecodeError("base64 input must be a string")
    try:
        return base64.b64decode(text.strip(), validate=True)
    except (binascii.Error, ValueError):
        raise DecodeError("invalid base64 data", {"value": text[:16]})
