"""
Proof Codec
===========

[ZKP] Decodes the human-supplied proof string into a Groth16 payload.

Format: nine comma-separated unsigned integers, decimal or 0x-prefixed hex,
in the order A[0], A[1], B[0][0], B[0][1], B[1][0], B[1][1], C[0], C[1], Input[0].
"""

import string
from dataclasses import dataclass
from typing import Tuple

from core.errors import ProofFormatError

PROOF_FIELD_COUNT = 9

# Zero-width space/non-joiner/joiner and BOM, often picked up by copy-paste
INVISIBLE_CHARS = ("\u200b", "\u200c", "\u200d", "\ufeff")

_HEX_DIGITS = frozenset(string.hexdigits)
_DEC_DIGITS = frozenset(string.digits)


@dataclass(frozen=True)
class ProofPayload:
    """Structured arguments for verifyProof(uint256[2], uint256[2][2], uint256[2], uint256[1])."""

    a: Tuple[int, int]
    b: Tuple[Tuple[int, int], Tuple[int, int]]
    c: Tuple[int, int]
    input: Tuple[int]

    @property
    def hash_identifier(self) -> str:
        """Input[0] as a decimal string; the revocable handle for this proof."""
        return str(self.input[0])

    def scalars(self) -> Tuple[int, ...]:
        """All nine values in input order."""
        return (*self.a, *self.b[0], *self.b[1], *self.c, *self.input)

    def as_call_args(self) -> Tuple[list, list, list, list]:
        """Arguments for the contract call, as nested lists."""
        return (
            list(self.a),
            [list(self.b[0]), list(self.b[1])],
            list(self.c),
            list(self.input),
        )


def clean_proof_text(raw_text: str) -> str:
    """Drop invisible characters, then surrounding whitespace."""
    for ch in INVISIBLE_CHARS:
        raw_text = raw_text.replace(ch, "")
    return raw_text.strip()


def _parse_scalar(field_text: str) -> int:
    if field_text[:2] in ("0x", "0X"):
        digits = field_text[2:]
        if not digits or not set(digits) <= _HEX_DIGITS:
            raise ValueError(field_text)
        return int(digits, 16)
    if not field_text or not set(field_text) <= _DEC_DIGITS:
        raise ValueError(field_text)
    return int(field_text, 10)


def parse_proof(raw_text: str) -> ProofPayload:
    """
    Parse proof text into a ProofPayload.

    Raises:
        ProofFormatError: wrong field count or an unparsable field
    """
    parts = clean_proof_text(raw_text).split(",")
    if len(parts) != PROOF_FIELD_COUNT:
        raise ProofFormatError(
            f"invalid zkpCode: expected {PROOF_FIELD_COUNT} comma-separated values, got {len(parts)}"
        )

    values = []
    for i, part in enumerate(parts):
        try:
            values.append(_parse_scalar(part.strip()))
        except ValueError:
            raise ProofFormatError(
                f"invalid zkpCode: failed to parse value at index {i}", index=i
            ) from None

    return ProofPayload(
        a=(values[0], values[1]),
        b=((values[2], values[3]), (values[4], values[5])),
        c=(values[6], values[7]),
        input=(values[8],),
    )
