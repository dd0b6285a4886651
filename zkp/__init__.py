"""
ZKP Module
==========
Proof handling against the on-chain verifier:
- ProofCodec: proof text -> ProofPayload
- ProofVerifier: simulate + commit verifyProof
- HashStatusChecker: active/revoked status of a recorded proof hash
- MembershipGate: club membership flags for a wallet
- FailClosedGate: shared deny-on-error policy
"""

from .codec import ProofPayload, parse_proof
from .gate import FailClosedGate
from .membership import MembershipGate, MembershipStatus
from .status import HashStatus, HashStatusChecker
from .verifier import ProofVerifier, VerificationOutcome

__all__ = [
    "ProofPayload",
    "parse_proof",
    "FailClosedGate",
    "MembershipGate",
    "MembershipStatus",
    "HashStatus",
    "HashStatusChecker",
    "ProofVerifier",
    "VerificationOutcome",
]
