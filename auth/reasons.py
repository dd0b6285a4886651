"""
Login Outcomes
==============

[AUTH] Closed set of denial reasons and the result object returned by
LoginOrchestrator. The transport layer localizes `reason` codes; `message`
is a default English text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from auth.accounts import Account


class DenialReason(str, Enum):
    """Why a login attempt was refused."""

    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    INVALID_ZKP_CODE = "INVALID_ZKP_CODE"
    PROOF_INVALID = "PROOF_INVALID"
    NOT_CLUB_MEMBER = "NOT_CLUB_MEMBER"
    FEATURE_DISABLED = "FEATURE_DISABLED"
    REGISTRATION_DISABLED = "REGISTRATION_DISABLED"
    ACCOUNT_DELETED = "ACCOUNT_DELETED"
    ACCOUNT_DISABLED = "ACCOUNT_DISABLED"
    PERSIST_ERROR = "PERSIST_ERROR"
    SESSION_ERROR = "SESSION_ERROR"

    @property
    def default_message(self) -> str:
        return DEFAULT_MESSAGES[self]

    @property
    def http_status(self) -> int:
        return HTTP_STATUS.get(self, 200)


DEFAULT_MESSAGES = {
    DenialReason.INVALID_PAYLOAD: "Request body is malformed",
    DenialReason.INVALID_ZKP_CODE: "ZKP code must be 9 comma-separated integers",
    DenialReason.PROOF_INVALID: "Proof verification failed",
    DenialReason.NOT_CLUB_MEMBER: "Wallet is not a member of the club",
    DenialReason.FEATURE_DISABLED: "ZKP authentication is not configured",
    DenialReason.REGISTRATION_DISABLED: "New user registration is disabled",
    DenialReason.ACCOUNT_DELETED: "Account has been deleted",
    DenialReason.ACCOUNT_DISABLED: "Account has been disabled",
    DenialReason.PERSIST_ERROR: "Could not create account",
    DenialReason.SESSION_ERROR: "Could not save session, please retry",
}

# Shape, proof and club failures carry an HTTP error; every other denial is
# a 200 with success=false
HTTP_STATUS = {
    DenialReason.INVALID_PAYLOAD: 400,
    DenialReason.INVALID_ZKP_CODE: 400,
    DenialReason.PROOF_INVALID: 401,
    DenialReason.NOT_CLUB_MEMBER: 403,
}


@dataclass
class LoginResult:
    """Terminal outcome of one login attempt."""

    success: bool
    reason: Optional[DenialReason] = None
    message: str = ""
    account: Optional[Account] = None
    transaction_hash: str = ""
    session_token: str = field(default="", repr=False)

    @classmethod
    def accept(cls, account: Account, transaction_hash: str, session_token: str = "") -> "LoginResult":
        return cls(
            success=True,
            account=account,
            transaction_hash=transaction_hash,
            session_token=session_token,
        )

    @classmethod
    def deny(cls, reason: DenialReason, message: Optional[str] = None,
             transaction_hash: str = "") -> "LoginResult":
        return cls(
            success=False,
            reason=reason,
            message=message or reason.default_message,
            transaction_hash=transaction_hash,
        )

    @property
    def http_status(self) -> int:
        return self.reason.http_status if self.reason else 200

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {"success": False, "reason": self.reason.value, "message": self.message}

        account = self.account
        return {
            "success": True,
            "message": "",
            "data": {
                "id": account.id,
                "username": account.username,
                "display_name": account.display_name,
                "role": account.role,
                "status": account.status,
                "group": account.group,
                "wallet_address": account.wallet_address,
                "tx_hash": self.transaction_hash,
            },
        }
