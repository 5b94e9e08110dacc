"""
Algorithm-dispatching sign/verify over raw byte payloads.

The first byte of a 33-byte public key selects the scheme:

- ``0xED``        Ed25519, 64-byte deterministic signatures over the message
- ``0x02``/``0x03`` secp256k1, DER ECDSA over SHA-512-Half of the message

``verify`` never raises; ``sign`` raises typed errors for bad key material.
"""

import hashlib
from enum import Enum

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    decode_dss_signature,
    encode_dss_signature,
)

from .codec import bytes_to_hex, hex_to_bytes
from .errors import DecodeError, InvalidKey, UnsupportedAlgorithm


ED25519_PREFIX = 0xED
PUBLIC_KEY_LENGTH = 33
ED25519_SIGNATURE_LENGTH = 64

# Order of the secp256k1 group
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

# SHA-512-Half digests are 32 bytes, the size Prehashed expects from SHA-256
_PREHASHED = ec.ECDSA(Prehashed(hashes.SHA256()))


class KeyAlgorithm(str, Enum):
    ED25519 = "ed25519"
    SECP256K1 = "secp256k1"


def sha512_half(data: bytes) -> bytes:
    """First 32 bytes of SHA-512."""
    return hashlib.sha512(data).digest()[:32]


def key_algorithm(public_key_hex: str) -> KeyAlgorithm:
    """
    Select the signature scheme from a hex public key's tag byte.

    Raises:
        UnsupportedAlgorithm: If the key is malformed or its tag is unknown
    """
    try:
        key = hex_to_bytes(public_key_hex)
    except DecodeError:
        raise UnsupportedAlgorithm("public key is not valid hex")
    if len(key) != PUBLIC_KEY_LENGTH:
        raise UnsupportedAlgorithm(
            f"public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(key)}",
            {"length": len(key)},
        )
    if key[0] == ED25519_PREFIX:
        return KeyAlgorithm.ED25519
    if key[0] in (0x02, 0x03):
        return KeyAlgorithm.SECP256K1
    raise UnsupportedAlgorithm(
        f"unsupported public key tag 0x{key[0]:02X}",
        {"tag": key[0]},
    )


def verify(public_key_hex: str, message: bytes, signature_hex: str) -> bool:
    """
    Verify ``signature_hex`` over ``message`` with ``public_key_hex``.

    Returns False for any malformed key, malformed signature, unsupported
    tag or failed check.
    """
    try:
        algorithm = key_algorithm(public_key_hex)
        key = hex_to_bytes(public_key_hex)
        signature = hex_to_bytes(signature_hex)
    except (UnsupportedAlgorithm, DecodeError):
        return False

    try:
        if algorithm == KeyAlgorithm.ED25519:
            if len(signature) != ED25519_SIGNATURE_LENGTH:
                return False
            ed25519.Ed25519PublicKey.from_public_bytes(key[1:]).verify(signature, message)
            return True

        public_key = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), key)
        public_key.verify(signature, sha512_half(message), _PREHASHED)
        return True
    except (InvalidSignature, ValueError):
        return False


def sign(public_key_hex: str, private_key_hex: str, message: bytes) -> str:
    """
    Sign ``message`` and return the upper-case hex signature.

    Args:
        public_key_hex: 33-byte public key selecting the scheme
        private_key_hex: 32-byte secret (a leading ``ED``/``00`` tag byte
            making it 33 bytes is accepted)
        message: Raw bytes to sign

    Raises:
        UnsupportedAlgorithm: If the public key tag is unrecognized
        InvalidKey: If the private key is malformed or does not belong
            to the public key
    """
    algorithm = key_algorithm(public_key_hex)
    public_key = hex_to_bytes(public_key_hex)

    try:
        secret = hex_to_bytes(private_key_hex)
    except DecodeError:
        raise InvalidKey("private key is not valid hex")
    if len(secret) == 33 and secret[0] in (ED25519_PREFIX, 0x00):
        secret = secret[1:]
    if len(secret) != 32:
        raise InvalidKey(
            f"{algorithm.value} private key must be 32 bytes, got {len(secret)}",
            {"algorithm": algorithm.value, "length": len(secret)},
        )

    if algorithm == KeyAlgorithm.ED25519:
        private_key = ed25519.Ed25519PrivateKey.from_private_bytes(secret)
        derived = bytes([ED25519_PREFIX]) + private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        if derived != public_key:
            raise InvalidKey("private key does not match the Ed25519 public key")
        return bytes_to_hex(private_key.sign(message))

    scalar = int.from_bytes(secret, "big")
    if not 0 < scalar < SECP256K1_ORDER:
        raise InvalidKey("secp256k1 private key is out of range")
    private_key = ec.derive_private_key(scalar, ec.SECP256K1())
    derived = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.CompressedPoint,
    )
    if derived != public_key:
        raise InvalidKey("private key does not match the secp256k1 public key")

    der = private_key.sign(sha512_half(message), _PREHASHED)
    r, s = decode_dss_signature(der)
    # Canonical signatures use the low-S form
    if s > SECP256K1_ORDER // 2:
        s = SECP256K1_ORDER - s
    return bytes_to_hex(encode_dss_signature(r, s))
