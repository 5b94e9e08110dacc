"""
Canonical blob serialization tests.

The bytes produced here are what gets signed, so they must never vary
for the same blob.
"""

import pytest

from unl_kernel.canonical import canonical_bytes, canonical_json


class TestCanonicalJson:
    """Compact, order-preserving JSON."""

    def test_keeps_insertion_order(self):
        """Object keys stay in the order the record built them."""
        assert canonical_json({"z": 1, "a": 2}) == '{"z":1,"a":2}'

    def test_no_whitespace(self):
        assert canonical_json({"key": [1, 2, 3]}) == '{"key":[1,2,3]}'

    def test_nested(self):
        assert canonical_json({"outer": {"b": None, "a": [True, False]}}) == '{"outer":{"b":null,"a":[true,false]}}'

    def test_integer_values(self):
        assert canonical_json(42) == "42"
        assert canonical_json(-17) == "-17"
        assert canonical_json(2**32 - 1) == "4294967295"

    def test_string_escaping(self):
        assert canonical_json("hello\nworld") == '"hello\\nworld"'
        assert canonical_json('quote"back\\') == '"quote\\"back\\\\"'

    def test_non_ascii_kept(self):
        assert canonical_bytes("é") == '"é"'.encode("utf-8")

    @pytest.mark.parametrize("value", [1.5, float("nan"), b"bytes", {1: "int key"}, object()])
    def test_rejects_unsupported(self, value):
        with pytest.raises(TypeError):
            canonical_json(value)
