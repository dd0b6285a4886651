"""
ZKP Login
=========

[AUTH] Authorization and provisioning for one ZKP login attempt.

[FLOW] Each step can end the attempt:
1. Service signing key configured?            -> FEATURE_DISABLED
2. Request shape / proof text decodes?         -> INVALID_PAYLOAD / INVALID_ZKP_CODE
3. Proof verified on-chain (simulate + commit) -> PROOF_INVALID / FEATURE_DISABLED
4. Wallet is a club member?                    -> NOT_CLUB_MEMBER
5. Existing account refreshed, or new account created
                                               -> ACCOUNT_DELETED / REGISTRATION_DISABLED / PERSIST_ERROR
6. Account enabled?                            -> ACCOUNT_DISABLED
7. Session established                         -> SESSION_ERROR

A membership denial after step 3 does not undo the on-chain record; it only
blocks this login.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from auth.accounts import (
    ROLE_COMMON_USER,
    USER_STATUS_ENABLED,
    Account,
    AccountStore,
)
from auth.reasons import DenialReason, LoginResult
from auth.session import SessionIdentity, SessionLayer
from config import AuthSettings
from core.errors import (
    ABIError,
    AccountStoreError,
    ChainConnectError,
    ConfigMissing,
    ProofFormatError,
    SessionError,
    VerifyError,
)
from zkp.codec import parse_proof
from zkp.membership import MembershipGate
from zkp.verifier import ProofVerifier

logger = logging.getLogger(__name__)


@dataclass
class LoginRequest:
    """Transport-level login input. proof_text is untrusted and may be any type."""
    proof_text: Any
    affiliate_code: str = ""


def abbreviate_address(address: str) -> str:
    """0x1234567890abcdef... -> 0x1234...cdef"""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


class LoginOrchestrator:
    """
    Args:
        verifier: ProofVerifier bound to the service key
        membership: MembershipGate for the configured club
        accounts: AccountStore
        sessions: SessionLayer
        settings: registration flag and default group
    """

    def __init__(
        self,
        verifier: ProofVerifier,
        membership: MembershipGate,
        accounts: AccountStore,
        sessions: SessionLayer,
        settings: AuthSettings,
    ):
        self.verifier = verifier
        self.membership = membership
        self.accounts = accounts
        self.sessions = sessions
        self.settings = settings

    async def login(self, request: LoginRequest) -> LoginResult:
        if not self.verifier.enabled:
            return self._deny(DenialReason.FEATURE_DISABLED)

        if not isinstance(request.proof_text, str) or not request.proof_text:
            return self._deny(DenialReason.INVALID_PAYLOAD)

        try:
            payload = parse_proof(request.proof_text)
        except ProofFormatError as e:
            return self._deny(DenialReason.INVALID_ZKP_CODE, str(e))

        try:
            outcome = await asyncio.to_thread(self.verifier.verify, payload)
        except (ConfigMissing, ChainConnectError, ABIError) as e:
            logger.error(f"[AUTH] ZKP login unavailable: {e}")
            return self._deny(DenialReason.FEATURE_DISABLED)
        except VerifyError as e:
            logger.warning(f"[AUTH] ZKP verification failed: {e}")
            return self._deny(DenialReason.PROOF_INVALID)

        wallet = outcome.wallet_address
        tx_hash = outcome.transaction_hash

        if not await asyncio.to_thread(self.membership.is_member, wallet):
            return self._deny(DenialReason.NOT_CLUB_MEMBER, transaction_hash=tx_hash)

        zkp_hash = payload.hash_identifier

        try:
            taken = await self.accounts.is_wallet_address_taken(wallet)
            if taken:
                account = await self.accounts.find_by_wallet_address(wallet)
            else:
                account = None
        except AccountStoreError as e:
            logger.error(f"[AUTH] Account lookup failed for {wallet}: {e}")
            return self._deny(DenialReason.PERSIST_ERROR, transaction_hash=tx_hash)

        if taken:
            if account is None or account.id == 0:
                return self._deny(DenialReason.ACCOUNT_DELETED, transaction_hash=tx_hash)

            account.zkp_hash = zkp_hash
            try:
                await self.accounts.update(account)
            except AccountStoreError as e:
                logger.error(f"[AUTH] Failed to update zkp hash for #{account.id}: {e}")
        else:
            if not self.settings.register_enabled:
                return self._deny(DenialReason.REGISTRATION_DISABLED, transaction_hash=tx_hash)

            account = self._new_account(wallet, zkp_hash)
            inviter_id = await self._resolve_inviter(request.affiliate_code)
            try:
                await self.accounts.create(account, inviter_id)
            except AccountStoreError as e:
                logger.error(f"[AUTH] Failed to create account for {wallet}: {e}")
                return self._deny(DenialReason.PERSIST_ERROR, transaction_hash=tx_hash)

        if account.status != USER_STATUS_ENABLED:
            return self._deny(DenialReason.ACCOUNT_DISABLED, transaction_hash=tx_hash)

        try:
            token = self.sessions.establish(SessionIdentity(
                id=account.id,
                username=account.username,
                role=account.role,
                status=account.status,
                group=account.group,
            ))
        except SessionError as e:
            logger.error(f"[AUTH] Session save failed for #{account.id}: {e}")
            return self._deny(DenialReason.SESSION_ERROR, transaction_hash=tx_hash)

        logger.info(f"[AUTH] ZKP login #{account.id} {wallet} tx={tx_hash}")
        return LoginResult.accept(account, tx_hash, token)

    def _new_account(self, wallet: str, zkp_hash: str) -> Account:
        name = abbreviate_address(wallet)
        return Account(
            username=name,
            display_name=name,
            role=ROLE_COMMON_USER,
            status=USER_STATUS_ENABLED,
            group=self.settings.default_group,
            wallet_address=wallet,
            zkp_hash=zkp_hash,
        )

    async def _resolve_inviter(self, aff_code: str) -> int:
        if not aff_code:
            return 0
        try:
            inviter_id: Optional[int] = await self.accounts.resolve_inviter_id(aff_code)
        except AccountStoreError as e:
            logger.debug(f"[AUTH] Ignoring affiliate code {aff_code!r}: {e}")
            return 0
        return inviter_id or 0

    @staticmethod
    def _deny(reason: DenialReason, message: Optional[str] = None,
              transaction_hash: str = "") -> LoginResult:
        logger.info(f"[AUTH] ZKP login denied: {reason.value}"
                    + (f" ({message})" if message else ""))
        return LoginResult.deny(reason, message, transaction_hash)
