"""
Validator set comparison between two documents.

Validators are keyed on their raw manifest string. A validator whose
manifest was re-encoded (or rotated) appears as both added and removed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .document import Blob
from .manifest import decode_manifest
from .verify import DocumentVerification


class ComparisonOutcome(str, Enum):
    EQUAL = "EQUAL"
    DIFFERENT = "DIFFERENT"


@dataclass(frozen=True)
class DiffEntry:
    manifest: str
    master_public_key: str
    domain: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "master_public_key": self.master_public_key,
            "domain": self.domain,
        }


@dataclass
class Comparison:
    """``added`` is in B but not A; ``removed`` is in A but not B."""
    outcome: ComparisonOutcome
    count_a: int
    count_b: int
    added: list[DiffEntry] = field(default_factory=list)
    removed: list[DiffEntry] = field(default_factory=list)

    @property
    def equal(self) -> bool:
        return self.outcome == ComparisonOutcome.EQUAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "count_a": self.count_a,
            "count_b": self.count_b,
            "added": [e.to_dict() for e in self.added],
            "removed": [e.to_dict() for e in self.removed],
        }


def _describe(manifest: str) -> DiffEntry:
    # Undecodable entries cannot be described; DecodeError propagates
    decoded = decode_manifest(manifest)
    return DiffEntry(
        manifest=manifest,
        master_public_key=decoded.master_key_base58,
        domain=decoded.domain,
    )


def _manifests(blob: Blob) -> list[str]:
    return [v.manifest or "" for v in blob.validators]


def compare_blobs(a: Blob, b: Blob) -> Comparison:
    """
    Symmetric difference of two blobs' validator sets.

    Entries keep the order in which they appear in their blob.

    Raises:
        DecodeError: If a differing entry's manifest cannot be decoded
    """
    manifests_a = _manifests(a)
    manifests_b = _manifests(b)
    set_a = set(manifests_a)
    set_b = set(manifests_b)

    removed_keys = list(dict.fromkeys(m for m in manifests_a if m not in set_b))
    added_keys = list(dict.fromkeys(m for m in manifests_b if m not in set_a))

    if not added_keys and not removed_keys:
        return Comparison(
            outcome=ComparisonOutcome.EQUAL,
            count_a=len(manifests_a),
            count_b=len(manifests_b),
        )

    return Comparison(
        outcome=ComparisonOutcome.DIFFERENT,
        count_a=len(manifests_a),
        count_b=len(manifests_b),
        added=[_describe(m) for m in added_keys],
        removed=[_describe(m) for m in removed_keys],
    )


def compare_documents(a: DocumentVerification, b: DocumentVerification) -> Comparison:
    """Compare the primary blobs of two verified documents."""
    return compare_blobs(a.primary_blob, b.primary_blob)
