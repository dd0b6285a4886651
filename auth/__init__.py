"""
Auth Module
===========
Login orchestration and its collaborators:
- LoginOrchestrator: verify -> membership -> provision -> session
- AccountStore: SQLite user records (aiosqlite)
- SessionLayer: session hand-off
- DenialReason / LoginResult: closed set of outcomes
"""

from .accounts import Account, AccountStore
from .login import LoginOrchestrator, LoginRequest, abbreviate_address
from .reasons import DenialReason, LoginResult
from .session import MemorySessionLayer, SessionIdentity, SessionLayer

__all__ = [
    "Account",
    "AccountStore",
    "LoginOrchestrator",
    "LoginRequest",
    "abbreviate_address",
    "DenialReason",
    "LoginResult",
    "MemorySessionLayer",
    "SessionIdentity",
    "SessionLayer",
]
