from __future__ import annotations

"""
address.py — canonical ⇄ human address codec

Format
------
Human    = bech32( HRP, data = convertbits(canonical, 8->5) )   e.g. "terra1..."
Canonical = raw account bytes: 20 bytes for key accounts, 32 bytes for
            contract accounts.

The controller stores canonical bytes and compares canonical bytes; human
strings only appear at the boundary (instantiate params, caller identity,
outbound instructions, query views).

>>> codec = AddressCodec()
>>> raw = bytes(range(20))
>>> codec.canonicalize(codec.humanize(raw)) == raw
True
"""

from dataclasses import dataclass
from typing import FrozenSet, Union

from emission.errors import MalformedAddress
from emission.utils import bech32 as _b32

CanonicalAddr = bytes
HumanAddr = str

ACCOUNT_LENGTHS: FrozenSet[int] = frozenset({20, 32})


@dataclass(frozen=True)
class AddressCodec:
    """Bech32 address codec bound to one human-readable prefix."""

    hrp: str = _b32.DEFAULT_HRP
    allowed_lengths: FrozenSet[int] = ACCOUNT_LENGTHS

    def canonicalize(self, human: HumanAddr) -> CanonicalAddr:
        """Parse a human address into canonical bytes. Raises MalformedAddress."""
        if not isinstance(human, str) or not human.strip():
            raise MalformedAddress("address must be a non-empty string", address=repr(human))
        text = human.strip()
        try:
            raw = _b32.decode_address(text, expected_hrp=self.hrp)
        except _b32.Bech32Error as e:
            raise MalformedAddress(f"bech32 decode failed: {e}", address=text) from e
        if len(raw) not in self.allowed_lengths:
            raise MalformedAddress(
                f"address payload length {len(raw)} not in {sorted(self.allowed_lengths)}",
                address=text,
            )
        return raw

    def humanize(self, canonical: Union[bytes, bytearray, memoryview]) -> HumanAddr:
        """Render canonical bytes as a human address. Raises MalformedAddress."""
        if not isinstance(canonical, (bytes, bytearray, memoryview)):
            raise MalformedAddress("canonical address must be bytes")
        raw = bytes(canonical)
        if len(raw) not in self.allowed_lengths:
            raise MalformedAddress(
                f"canonical address length {len(raw)} not in {sorted(self.allowed_lengths)}",
                details={"hex": raw.hex()},
            )
        try:
            return _b32.encode_address(raw, hrp=self.hrp)
        except _b32.Bech32Error as e:
            raise MalformedAddress(f"bech32 encode failed: {e}", details={"hex": raw.hex()}) from e

    def validate(self, human: HumanAddr) -> HumanAddr:
        """Round-trip a human address into its normalized (lowercase) form."""
        return self.humanize(self.canonicalize(human))


def short(addr: str, *, keep: int = 10) -> str:
    """Render a short address like terra1qy…x7k2 (useful in logs)."""
    if len(addr) <= 2 * keep + 3:
        return addr
    return f"{addr[:keep]}…{addr[-keep // 2:]}"


__all__ = ["AddressCodec", "CanonicalAddr", "HumanAddr", "ACCOUNT_LENGTHS", "short"]
