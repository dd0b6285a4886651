"""
Membership Gate
===============

[MEMBERSHIP] Club membership lookup on the membership query contract.

A wallet is a member if any of the four tiers is set:
permanent, temporary, token-based or cross-chain.
"""

import logging
from dataclasses import dataclass

from web3 import Web3

from chain.client import ChainClient
from core.errors import ChainError, MembershipError
from zkp.gate import FailClosedGate

logger = logging.getLogger(__name__)

DEFAULT_CLUB_NAME = "ai"


@dataclass(frozen=True)
class MembershipStatus:
    """Tier flags for one wallet in one club."""
    is_permanent: bool
    is_temporary: bool
    is_token_based: bool
    is_cross_chain: bool

    @property
    def is_member(self) -> bool:
        return self.is_permanent or self.is_temporary or self.is_token_based or self.is_cross_chain

    def to_dict(self) -> dict:
        return {
            "is_member": self.is_member,
            "is_permanent": self.is_permanent,
            "is_temporary": self.is_temporary,
            "is_token_based": self.is_token_based,
            "is_cross_chain": self.is_cross_chain,
        }


class MembershipGate:
    """
    Args:
        client: shared ChainClient
        club_name: club checked by is_member()
    """

    def __init__(self, client: ChainClient, club_name: str = DEFAULT_CLUB_NAME):
        self.client = client
        self.club_name = club_name
        self._gate = FailClosedGate(
            "membership",
            lambda address: self.check(address, self.club_name),
            lambda s: s.is_member,
        )

    def check(self, wallet_address: str, club_name: str) -> MembershipStatus:
        """
        Query detailed membership of a wallet in a club.

        Raises:
            MembershipError: bad address or any chain failure
        """
        try:
            member = Web3.to_checksum_address(wallet_address)
        except (ValueError, TypeError) as e:
            raise MembershipError(f"invalid wallet address: {wallet_address!r}") from e

        try:
            _, membership = self.client.abis()
            result = self.client.call_bounded(
                membership.functions.checkDetailedMembership(member, club_name).call
            )
        except ChainError as e:
            raise MembershipError(f"contract call failed: {e}") from e

        if not isinstance(result, (list, tuple)) or len(result) != 4:
            raise MembershipError("unexpected output length from checkDetailedMembership")

        status = MembershipStatus(*(bool(flag) for flag in result))
        logger.debug(f"[MEMBERSHIP] {member} in '{club_name}': {status}")
        return status

    def is_member(self, wallet_address: str) -> bool:
        """Empty address -> pass; otherwise any tier flag; errors -> deny."""
        return self._gate.allows(wallet_address)
