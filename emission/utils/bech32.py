from __future__ import annotations

"""
Bech32 encoder/decoder for Cosmos-style account addresses (terra1…)
==================================================================

BIP-0173 Bech32 primitives (and BIP-0350 Bech32m detection) plus two thin
helpers that map raw account bytes to and from the human-readable form:

- HRP (Human Readable Part): "terra" by default, configurable
- Encoding: classic **Bech32** (constant 1), as Cosmos SDK chains use
- Data: raw account bytes, converted 8→5 bits (no witness version byte)

Usage
-----
    addr = encode_address(account_bytes)              # "terra1..."
    raw = decode_address(addr)                        # original bytes
    hrp, data5, spec = bech32_decode(addr)            # low-level

References
----------
BIP-0173: https://github.com/bitcoin/bips/blob/master/bip-0173.mediawiki
BIP-0350: https://github.com/bitcoin/bips/blob/master/bip-0350.mediawiki
"""

from typing import Iterable, List, Sequence, Tuple

# 32-character alphabet per BIP-0173.
CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
CHARSET_REV = {c: i for i, c in enumerate(CHARSET)}

_BECH32_CONST = 1
_BECH32M_CONST = 0x2BC830A3
_MAX_LEN = 90

DEFAULT_HRP = "terra"


class Bech32Error(ValueError):
    pass


def _polymod(values: Sequence[int]) -> int:
    GENERATORS = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
    chk = 1
    for v in values:
        if v < 0 or v > 31:
            raise Bech32Error("polymod values must be 5-bit")
        top = chk >> 25
        chk = ((chk & 0x1FFFFFF) << 5) ^ v
        for i in range(5):
            if (top >> i) & 1:
                chk ^= GENERATORS[i]
    return chk


def _hrp_expand(hrp: str) -> List[int]:
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def _create_checksum(hrp: str, data: Sequence[int], bech32m: bool) -> List[int]:
    const = _BECH32M_CONST if bech32m else _BECH32_CONST
    values = _hrp_expand(hrp) + list(data)
    polymod = _polymod(values + [0, 0, 0, 0, 0, 0]) ^ const
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]


def _verify_checksum(hrp: str, data: Sequence[int]) -> Tuple[bool, str]:
    """Return (ok, spec) where spec is "bech32" or "bech32m" ("" when not ok)."""
    pm = _polymod(_hrp_expand(hrp) + list(data))
    if pm == _BECH32_CONST:
        return True, "bech32"
    if pm == _BECH32M_CONST:
        return True, "bech32m"
    return False, ""


def bech32_encode(hrp: str, data: Sequence[int], spec: str = "bech32") -> str:
    """Encode HRP + 5-bit data words into a Bech32/Bech32m string."""
    if not hrp or any((ord(c) < 33 or ord(c) > 126) for c in hrp):
        raise Bech32Error("invalid HRP characters")
    if any(d < 0 or d > 31 for d in data):
        raise Bech32Error("data values must be 5-bit (0..31)")
    if spec not in ("bech32", "bech32m"):
        raise Bech32Error("spec must be 'bech32' or 'bech32m'")

    hrp = hrp.lower()
    checksum = _create_checksum(hrp, data, spec == "bech32m")
    combined = list(data) + checksum
    out = hrp + "1" + "".join(CHARSET[d] for d in combined)
    if len(out) > _MAX_LEN:
        raise Bech32Error("encoded string exceeds bech32 length limit")
    return out


def bech32_decode(bech: str) -> Tuple[str, List[int], str]:
    """
    Decode a Bech32/Bech32m string into (hrp, data, spec).
    Raises Bech32Error on failure.
    """
    if not isinstance(bech, str):
        raise Bech32Error("bech32 input must be a string")
    if len(bech) < 8 or len(bech) > _MAX_LEN:
        raise Bech32Error("invalid bech32 string length")

    if any(c.isupper() for c in bech) and any(c.islower() for c in bech):
        raise Bech32Error("mixed-case bech32 is invalid")
    bech = bech.lower()

    pos = bech.rfind("1")
    if pos < 1 or pos + 7 > len(bech):
        raise Bech32Error("invalid position of separator '1'")

    hrp = bech[:pos]
    data_part = bech[pos + 1 :]
    if any((ord(c) < 33 or ord(c) > 126) for c in hrp):
        raise Bech32Error("invalid HRP characters")

    try:
        data = [CHARSET_REV[c] for c in data_part]
    except KeyError:
        raise Bech32Error("invalid data character in bech32 string")

    ok, spec = _verify_checksum(hrp, data)
    if not ok:
        raise Bech32Error("checksum mismatch")

    return hrp, data[:-6], spec


def convertbits(
    data: Iterable[int], from_bits: int, to_bits: int, pad: bool = True
) -> List[int]:
    """
    General power-of-2 base conversion (BIP-0173 "convertbits").
    If pad=False, leftover bits must be zero (strict mode).
    """
    acc = 0
    bits = 0
    ret: List[int] = []
    maxv = (1 << to_bits) - 1
    max_acc = (1 << (from_bits + to_bits - 1)) - 1

    for value in data:
        if value < 0 or (value >> from_bits):
            raise Bech32Error("invalid value for convertbits")
        acc = ((acc << from_bits) | value) & max_acc
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            ret.append((acc >> bits) & maxv)

    if pad:
        if bits:
            ret.append((acc << (to_bits - bits)) & maxv)
    else:
        if bits >= from_bits:
            raise Bech32Error("illegal zero-padding")
        if ((acc << (to_bits - bits)) & maxv) != 0:
            raise Bech32Error("non-zero padding")

    return ret


def encode_address(payload: bytes, hrp: str = DEFAULT_HRP) -> str:
    """Encode raw account bytes as a classic Bech32 address."""
    if not isinstance(payload, (bytes, bytearray, memoryview)):
        raise Bech32Error("payload must be bytes-like")
    return bech32_encode(hrp, convertbits(bytes(payload), 8, 5, pad=True), spec="bech32")


def decode_address(addr: str, expected_hrp: str = DEFAULT_HRP) -> bytes:
    """
    Decode a Bech32 address back to raw account bytes.

    * Rejects Bech32m strings (Cosmos accounts use classic Bech32).
    * Enforces the expected HRP when one is given.
    """
    hrp, data5, spec = bech32_decode(addr)
    if spec != "bech32":
        raise Bech32Error("account addresses must use classic bech32")
    if expected_hrp and hrp != expected_hrp:
        raise Bech32Error(f"unexpected HRP: {hrp} (expected {expected_hrp})")
    return bytes(convertbits(data5, 5, 8, pad=False))


__all__ = [
    "Bech32Error",
    "DEFAULT_HRP",
    "bech32_encode",
    "bech32_decode",
    "convertbits",
    "encode_address",
    "decode_address",
]
