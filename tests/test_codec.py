"""Checksummed base58, hex and base64 codec tests."""

import os

import pytest

from unl_kernel.codec import (
    NetworkTag,
    b58decode,
    b58encode,
    b64decode,
    b64encode,
    base58_to_hex,
    decode_checked,
    encode_checked,
    hex_to_base58,
    hex_to_bytes,
)
from unl_kernel.errors import DecodeError


class TestChecked:
    """Checksummed encoding with network tags."""

    def test_account_zero(self):
        """The all-zero account ID has a well-known address."""
        assert encode_checked(NetworkTag.ACCOUNT_ID, bytes(20)) == "rrrrrrrrrrrrrrrrrrrrrhoLvTp"

    def test_account_one(self):
        assert encode_checked(NetworkTag.ACCOUNT_ID, bytes(19) + b"\x01") == "rrrrrrrrrrrrrrrrrrrrBZbvji"

    def test_decode_known_address(self):
        assert decode_checked(NetworkTag.ACCOUNT_ID, "rrrrrrrrrrrrrrrrrrrrrhoLvTp") == bytes(20)

    @pytest.mark.parametrize("tag", list(NetworkTag))
    def test_round_trip(self, tag):
        data = os.urandom(tag.payload_size)
        assert decode_checked(tag, encode_checked(tag, data)) == data

    def test_node_public_keys_start_with_n(self):
        key = b"\xED" + os.urandom(32)
        assert encode_checked(NetworkTag.NODE_PUBLIC, key).startswith("n")

    def test_single_bit_corruption_detected(self):
        """Flipping any bit of a valid encoding must fail to decode."""
        encoded = encode_checked(NetworkTag.NODE_PUBLIC, b"\x03" + os.urandom(32))
        raw = b58decode(encoded)

        for bit in range(len(raw) * 8):
            corrupted = bytearray(raw)
            corrupted[bit // 8] ^= 1 << (bit % 8)
            with pytest.raises(DecodeError):
                decode_checked(NetworkTag.NODE_PUBLIC, b58encode(bytes(corrupted)))

    def test_invalid_character(self):
        encoded = encode_checked(NetworkTag.NODE_PUBLIC, b"\xED" + bytes(32))
        with pytest.raises(DecodeError, match="invalid base58 character"):
            decode_checked(NetworkTag.NODE_PUBLIC, "0" + encoded[1:])

    def test_non_ascii_input(self):
        with pytest.raises(DecodeError):
            decode_checked(NetworkTag.NODE_PUBLIC, "né")

    def test_wrong_tag(self):
        encoded = encode_checked(NetworkTag.ACCOUNT_PUBLIC, b"\x02" + bytes(32))
        with pytest.raises(DecodeError, match="tag"):
            decode_checked(NetworkTag.NODE_PUBLIC, encoded)

    def test_wrong_payload_length(self):
        """A checksum-valid string with the wrong key size is rejected."""
        from unl_kernel.codec import _checksum

        payload = bytes([NetworkTag.NODE_PUBLIC]) + bytes(32)
        encoded = b58encode(payload + _checksum(payload))
        with pytest.raises(DecodeError, match="33 bytes"):
            decode_checked(NetworkTag.NODE_PUBLIC, encoded)

    def test_encode_rejects_wrong_length(self):
        with pytest.raises(DecodeError):
            encode_checked(NetworkTag.NODE_PUBLIC, bytes(32))

    @pytest.mark.parametrize("text", ["", "r", "rrrr"])
    def test_too_short(self, text):
        with pytest.raises(DecodeError):
            decode_checked(NetworkTag.ACCOUNT_ID, text)


class TestConversions:

    def test_hex_base58_round_trip(self):
        key_hex = ("ED" + os.urandom(32).hex()).upper()
        assert base58_to_hex(hex_to_base58(key_hex)) == key_hex

    def test_hex_to_base58_accepts_lowercase(self):
        key_hex = "ed" + "11" * 32
        assert base58_to_hex(hex_to_base58(key_hex)) == key_hex.upper()

    def test_invalid_hex(self):
        with pytest.raises(DecodeError):
            hex_to_bytes("XYZ")

    def test_odd_length_hex(self):
        with pytest.raises(DecodeError):
            hex_to_bytes("ABC")

    def test_leading_zero_bytes_preserved(self):
        data = b"\x00\x00\x01\x02"
        assert b58decode(b58encode(data)) == data

    def test_base64_round_trip(self):
        data = os.urandom(40)
        assert b64decode(b64encode(data)) == data

    def test_base64_rejects_invalid_alphabet(self):
        with pytest.raises(DecodeError):
            b64decode("not*base64")
