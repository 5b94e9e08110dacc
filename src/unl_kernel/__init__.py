"""
unl-kernel: decode, verify, compare and sign validator list documents.

Manifests, blobs and documents follow the XRPL-family wire formats, so
documents produced here verify on nodes and documents fetched from a
publisher verify here.
"""

from .canonical import canonical_json
from .codec import (
    NetworkTag,
    base58_to_hex,
    decode_checked,
    encode_checked,
    hex_to_base58,
)
from .compare import Comparison, ComparisonOutcome, compare_blobs, compare_documents
from .crypto import KeyAlgorithm, sha512_half, sign, verify
from .document import (
    Blob,
    BlobEnvelope,
    ListDocument,
    ListDocumentV1,
    ListDocumentV2,
    Validator,
    parse_document,
)
from .epoch import (
    NETWORK_EPOCH_OFFSET,
    to_network_time,
    to_unix_time,
)
from .errors import (
    DecodeError,
    ErrorCode,
    InvalidKey,
    MalformedManifest,
    ParameterError,
    SecretNotFound,
    SignatureStatus,
    SourceUnavailable,
    UnlError,
    UnsupportedAlgorithm,
    UnsupportedVersion,
    VerificationError,
)
from .manifest import Manifest, canonical_payload, decode_manifest, encode_manifest
from .sign import SigningRequest, build_document, sign_document
from .verify import DocumentVerification, verify_document

__version__ = "0.1.0"
__all__ = [
    # Codec
    "NetworkTag",
    "encode_checked",
    "decode_checked",
    "hex_to_base58",
    "base58_to_hex",
    "canonical_json",
    "NETWORK_EPOCH_OFFSET",
    "to_network_time",
    "to_unix_time",
    # Manifests
    "Manifest",
    "decode_manifest",
    "encode_manifest",
    "canonical_payload",
    # Signatures
    "KeyAlgorithm",
    "sha512_half",
    "sign",
    "verify",
    # Documents
    "Blob",
    "BlobEnvelope",
    "ListDocument",
    "ListDocumentV1",
    "ListDocumentV2",
    "Validator",
    "parse_document",
    # Pipelines
    "DocumentVerification",
    "verify_document",
    "Comparison",
    "ComparisonOutcome",
    "compare_blobs",
    "compare_documents",
    "SigningRequest",
    "build_document",
    "sign_document",
    # Errors
    "ErrorCode",
    "SignatureStatus",
    "VerificationError",
    "UnlError",
    "DecodeError",
    "MalformedManifest",
    "UnsupportedVersion",
    "UnsupportedAlgorithm",
    "InvalidKey",
    "ParameterError",
    "SecretNotFound",
    "SourceUnavailable",
]
