"""
Integrity digest for the persisted user data.

SHA-256 over the canonical JSON encoding of the user map, base64-encoded so it
sits in the JSON envelope next to the data it covers.
"""

import base64
import hmac
import json
from typing import Any

from cryptography.hazmat.primitives.hashes import Hash, SHA256


def canonical_bytes(payload: Any) -> bytes:
    """Stable encoding: sorted keys, no whitespace, UTF-8 (lone surrogates passed through)."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8", "surrogatepass")


def compute_digest(data: bytes) -> bytes:
    digest = Hash(SHA256())
    digest.update(data)
    return digest.finalize()


def compute_checksum_b64(payload: Any) -> str:
    return base64.b64encode(compute_digest(canonical_bytes(payload))).decode("ascii")


def verify_checksum_b64(payload: Any, checksum: str) -> bool:
    if not isinstance(checksum, str):
        return False
    return hmac.compare_digest(compute_checksum_b64(payload).encode("ascii"), checksum.encode("utf-8"))
