"""
Fail-Closed Gate
================

[SECURITY] Shared policy for on-chain yes/no checks:
- empty key (account not created through ZKP) -> allowed
- query raised anything -> denied
- otherwise -> predicate(result)

An oracle that cannot give a definite positive answer never lets a user in.
"""

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

R = TypeVar("R")


class FailClosedGate(Generic[R]):
    """
    Wrap a remote query and a validity predicate into a boolean check.

    Args:
        name: label used in log lines
        query: key -> result, may raise
        predicate: result -> allowed?
    """

    def __init__(self, name: str, query: Callable[[str], R], predicate: Callable[[R], bool]):
        self.name = name
        self.query = query
        self.predicate = predicate

    def allows(self, key: str) -> bool:
        if not key:
            return True

        try:
            result = self.query(key)
        except Exception as e:
            logger.warning(f"[GATE] {self.name} check failed for {key}, denying: {e}")
            return False

        return bool(self.predicate(result))
