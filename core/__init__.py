"""
Core Module
===========
Shared building blocks:
- errors: exception hierarchy for the login pipeline
"""

from .errors import ZkpAuthError

__all__ = ["ZkpAuthError"]
