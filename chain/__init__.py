"""
Chain Module
============
Web3 connection and contract bindings shared by every on-chain check.
"""

from .client import ChainClient, create_chain_client

__all__ = ["ChainClient", "create_chain_client"]
