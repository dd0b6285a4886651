"""
Error Hierarchy
===============

[ERRORS] Every failure the login pipeline can raise, grouped by class:
- Input: ProofFormatError
- Chain (oracle): ChainConnectError, ABIError, ChainTimeout, ContractReverted,
  ChainCallError, ChainDecodeError
- Verification: ConfigMissing, PackError, SimulationFailed, ProofInvalid, SubmitFailed
- Queries: StatusError, MembershipError
- Collaborators: AccountStoreError, SessionError

ChainConnectError, ABIError and ConfigMissing are permanent until restart
and mean "feature disabled", not "this login failed".
"""

from typing import Optional


class ZkpAuthError(Exception):
    """Base class for all errors raised by this package."""


# ============================================================================
# Input
# ============================================================================

class ProofFormatError(ZkpAuthError, ValueError):
    """Proof text could not be decoded into a payload."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


# ============================================================================
# Chain
# ============================================================================

class ChainError(ZkpAuthError):
    """Failure talking to the chain node."""


class ChainConnectError(ChainError):
    """Connection to the RPC endpoint could not be established."""


class ABIError(ChainError):
    """Contract interface descriptor could not be parsed."""


class ChainTimeout(ChainError):
    """Remote call exceeded the per-call timeout."""


class ContractReverted(ChainError):
    """Contract execution reverted."""


class ChainCallError(ChainError):
    """Any other RPC failure."""


class ChainDecodeError(ChainCallError):
    """Call returned data that does not match the ABI outputs."""


# ============================================================================
# Verification
# ============================================================================

class VerifyError(ZkpAuthError):
    """Base class for ProofVerifier failures."""


class ConfigMissing(VerifyError):
    """Service signing key absent or unusable."""


class PackError(VerifyError):
    """Call arguments could not be ABI-encoded."""


class SimulationFailed(VerifyError):
    """Read-only verifyProof call failed (network, timeout or revert)."""


class ProofInvalid(VerifyError):
    """Simulation succeeded but did not report a valid proof."""


class SubmitFailed(VerifyError):
    """Signing or broadcast failed after a valid simulation."""

    def __init__(self, message: str, wallet_address: str = ""):
        super().__init__(message)
        self.wallet_address = wallet_address


# ============================================================================
# Queries
# ============================================================================

class StatusError(ZkpAuthError):
    """Hash status query failed."""


class MembershipError(ZkpAuthError):
    """Membership query failed."""


# ============================================================================
# Collaborators
# ============================================================================

class AccountStoreError(ZkpAuthError):
    """Account persistence failed."""


class SessionError(ZkpAuthError):
    """Session could not be established."""
