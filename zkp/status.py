"""
Hash Status Checker
===================

[ZKP] Re-checks a previously verified proof hash (active / revoked) for
session re-validation. Not used during the initial login.
"""

import logging
from dataclasses import dataclass

from chain.client import ChainClient
from core.errors import ChainError, StatusError
from zkp.gate import FailClosedGate

logger = logging.getLogger(__name__)

UINT256_MAX = 2**256 - 1


@dataclass(frozen=True)
class HashStatus:
    """On-chain snapshot of a proof hash."""
    is_active: bool
    deployer: str
    exists: bool


def hash_to_bytes32(hash_identifier: str) -> bytes:
    """Decimal hash identifier -> 32-byte big-endian, left zero-padded."""
    if not hash_identifier.isascii() or not hash_identifier.isdigit():
        raise StatusError("invalid zkpHash: failed to parse as decimal")

    value = int(hash_identifier, 10)
    if value > UINT256_MAX:
        raise StatusError("invalid zkpHash: exceeds 32 bytes")
    return value.to_bytes(32, "big")


class HashStatusChecker:
    """Queries getHashStatus on the verifier contract."""

    def __init__(self, client: ChainClient):
        self.client = client
        self._gate = FailClosedGate(
            "hash status",
            self.status,
            lambda s: s.exists and s.is_active,
        )

    def status(self, hash_identifier: str) -> HashStatus:
        """
        Fetch the status of a proof hash.

        Raises:
            StatusError: bad identifier or any chain failure
        """
        hash32 = hash_to_bytes32(hash_identifier)

        try:
            verifier, _ = self.client.abis()
            result = self.client.call_bounded(
                verifier.functions.getHashStatus(hash32).call
            )
        except ChainError as e:
            raise StatusError(f"contract call failed: {e}") from e

        if not isinstance(result, (list, tuple)) or len(result) != 3:
            raise StatusError("unexpected output length from getHashStatus")

        is_active, deployer, exists = result
        return HashStatus(is_active=bool(is_active), deployer=str(deployer), exists=bool(exists))

    def is_valid(self, hash_identifier: str) -> bool:
        """Empty hash -> valid; otherwise exists and active; errors -> invalid."""
        return self._gate.allows(hash_identifier)
