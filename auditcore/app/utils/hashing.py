"""
Cryptographic hashing utilities.

Provides the standardized SHA-256 helper used to derive audit cache keys
and prompt identities.

IMPORTANT DESIGN RULE:
- Canonicalization MUST occur outside this module.
- This module hashes bytes, and bytes only.
"""

import hashlib
from typing import Union


def sha256_hexdigest(canonical_bytes: Union[bytes, bytearray]) -> str:
    """
    Compute a deterministic SHA-256 hex digest over canonical bytes.

    IMPORTANT:
    - Input MUST already be canonicalized.
    - No normalization or transformation occurs here.

    Returns:
        The lowercase hexadecimal digest (64 characters).
    """
    if not isinstance(canonical_bytes, (bytes, bytearray)):
        raise TypeError(
            "sha256_hexdigest expects canonical bytes, "
            f"got {type(canonical_bytes).__name__}"
        )

    return hashlib.sha256(canonical_bytes).hexdigest()
