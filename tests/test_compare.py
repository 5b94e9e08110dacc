"""Validator set comparison tests."""

from dataclasses import replace

import pytest

from factories import make_document, make_validator_manifests
from unl_kernel.codec import hex_to_base58
from unl_kernel.compare import ComparisonOutcome, compare_blobs, compare_documents
from unl_kernel.document import Blob, Validator
from unl_kernel.errors import DecodeError
from unl_kernel.manifest import decode_manifest, encode_manifest
from unl_kernel.verify import verify_document


def _blob(manifests: list[str]) -> Blob:
    return Blob(
        sequence=1,
        expiration=100,
        validators=[Validator(validation_public_key="", manifest=m) for m in manifests],
    )


def test_document_equal_to_itself(publisher, validator_manifests):
    verified = verify_document(make_document(publisher, validator_manifests))
    comparison = compare_documents(verified, verified)

    assert comparison.outcome == ComparisonOutcome.EQUAL
    assert comparison.equal
    assert comparison.count_a == comparison.count_b == 3
    assert comparison.added == [] and comparison.removed == []


def test_order_does_not_matter(validator_manifests):
    comparison = compare_blobs(_blob(validator_manifests), _blob(list(reversed(validator_manifests))))
    assert comparison.equal


def test_versions_compare_by_validators(publisher, validator_manifests):
    v1 = verify_document(make_document(publisher, validator_manifests, version=1))
    v2 = verify_document(make_document(publisher, validator_manifests, version=2, sequence=5))
    assert compare_documents(v1, v2).equal


def test_removed(publisher, validator_manifests):
    a = verify_document(make_document(publisher, validator_manifests, version=2))
    b = verify_document(make_document(publisher, validator_manifests[:2], version=2))
    comparison = compare_documents(a, b)

    assert comparison.outcome == ComparisonOutcome.DIFFERENT
    assert comparison.added == []
    assert len(comparison.removed) == 1

    entry = comparison.removed[0]
    decoded = decode_manifest(validator_manifests[2])
    assert entry.manifest == validator_manifests[2]
    assert entry.master_public_key == hex_to_base58(decoded.master_key_hex)
    assert entry.domain == "validator2.example"


def test_added_keeps_blob_order(validator_manifests):
    extra = make_validator_manifests(2)
    comparison = compare_blobs(_blob(validator_manifests[:1]), _blob(validator_manifests[:1] + extra))

    assert [e.manifest for e in comparison.added] == extra
    assert comparison.removed == []
    assert comparison.count_a == 1
    assert comparison.count_b == 3


def test_reencoded_manifest_is_added_and_removed(validator_manifests):
    """Keys are raw manifest strings; a re-encoding of the same manifest differs."""
    original = validator_manifests[0]
    decoded = decode_manifest(original)
    variant = encode_manifest(replace(decoded, domain="renamed.example"))

    comparison = compare_blobs(_blob([original]), _blob([variant]))

    assert not comparison.equal
    assert comparison.removed[0].master_public_key == comparison.added[0].master_public_key


def test_undecodable_difference_raises(validator_manifests):
    with pytest.raises(DecodeError):
        compare_blobs(_blob(validator_manifests), _blob(validator_manifests + ["!!!!"]))


def test_undecodable_common_entry_is_ignored(validator_manifests):
    comparison = compare_blobs(_blob(validator_manifests + ["!!!!"]), _blob(["!!!!"] + validator_manifests))
    assert comparison.equal


def test_to_dict(validator_manifests):
    data = compare_blobs(_blob(validator_manifests[:1]), _blob(validator_manifests)).to_dict()

    assert data["outcome"] == "DIFFERENT"
    assert len(data["added"]) == 2
    assert set(data["added"][0]) == {"master_public_key", "domain"}
