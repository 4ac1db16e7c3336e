from __future__ import annotations
"""
Emission controller test suite package.

Addresses used across the tests are derived deterministically from a label
with SHA3, so every run (and every platform) sees the same accounts.
"""

import hashlib

TEST_SEED: int = 0xC15A


def derive_account(label: str, length: int = 20) -> bytes:
    """Deterministic canonical address bytes for `label`."""
    out = b""
    ctr = 0
    while len(out) < length:
        m = hashlib.sha3_256()
        m.update(b"emission-tests-v1|")
        m.update(str(TEST_SEED).encode("ascii"))
        m.update(label.encode("utf-8"))
        m.update(ctr.to_bytes(4, "big"))
        out += m.digest()
        ctr += 1
    return out[:length]


__all__ = ["TEST_SEED", "derive_account"]
