"""
ZKP Login Configuration
=======================
Centralized configuration for the chain, auth, storage and API layers.
"""

from dataclasses import dataclass, field
from typing import Dict

import os

# ============================================================================
# Blockchain Network Presets
# ============================================================================

NETWORKS: Dict[str, Dict[str, object]] = {
    "base": {
        "name": "Base Mainnet",
        "chain_id": 8453,
        "rpc_url": "https://mainnet.base.org",
        "explorer_url": "https://basescan.org",
        "verifier_address": "0x7587CA385f1e10c411638003dA0f1bd3C99b919e",
        "membership_address": "0x2A152405afB201258D66919570BbD4625455a65f",
    },
    "base-sepolia": {
        "name": "Base Sepolia",
        "chain_id": 84532,
        "rpc_url": "https://sepolia.base.org",
        "explorer_url": "https://sepolia.basescan.org",
        # NOTE: Fill in when deployed to the testnet
        "verifier_address": "0x0000000000000000000000000000000000000000",
        "membership_address": "0x0000000000000000000000000000000000000000",
    },
}

# Selected network from environment (.env: ZKP_NETWORK)
ZKP_NETWORK: str = os.getenv("ZKP_NETWORK", "base").lower()
if ZKP_NETWORK not in NETWORKS:
    ZKP_NETWORK = "base"

_SELECTED = NETWORKS[ZKP_NETWORK]

# Convenience globals
RPC_URL: str = os.getenv("ZKP_RPC_URL", "").strip() or _SELECTED["rpc_url"]  # type: ignore
CHAIN_ID: int = int(_SELECTED["chain_id"])  # type: ignore
EXPLORER_URL: str = _SELECTED["explorer_url"]  # type: ignore
VERIFIER_ADDRESS: str = _SELECTED["verifier_address"]  # type: ignore
MEMBERSHIP_ADDRESS: str = _SELECTED["membership_address"]  # type: ignore

# Auth environment overrides
ZKP_PRIVATE_KEY: str = os.getenv("ZKP_PRIVATE_KEY", "").strip()
REGISTER_ENABLED: bool = os.getenv("REGISTER_ENABLED", "true").lower() == "true"
CLUB_NAME: str = os.getenv("ZKP_CLUB_NAME", "ai").strip() or "ai"
DB_PATH: str = os.getenv("ZKP_DB_PATH", "accounts.db")
API_PORT_ENV = os.getenv("ZKP_API_PORT", "").strip()
try:
    API_PORT: int = int(API_PORT_ENV) if API_PORT_ENV else 3000
except ValueError:
    API_PORT = 3000


@dataclass
class ChainSettings:
    """Chain connection and contract parameters."""

    rpc_url: str = RPC_URL
    chain_id: int = CHAIN_ID
    explorer_url: str = EXPLORER_URL

    # Groth16 verifier (verifyProof / getHashStatus)
    verifier_address: str = VERIFIER_ADDRESS

    # Club membership query contract (checkDetailedMembership)
    membership_address: str = MEMBERSHIP_ADDRESS

    # Per-RPC timeout (seconds)
    call_timeout: float = 30.0

    # Gas ceiling for verifyProof transactions
    gas_limit: int = 300_000


@dataclass
class AuthSettings:
    """Login and account provisioning settings."""

    # Service signing key. Empty disables ZKP login entirely.
    signing_key: str = field(default=ZKP_PRIVATE_KEY, repr=False)

    # Allow creating accounts for unseen wallets
    register_enabled: bool = REGISTER_ENABLED

    # Club whose members may log in
    club_name: str = CLUB_NAME

    # Entitlement group assigned to new accounts
    default_group: str = "vip"


@dataclass
class StorageSettings:
    """Account storage settings."""

    # Path to the SQLite database
    database_path: str = DB_PATH


@dataclass
class ApiSettings:
    """HTTP adapter settings."""

    host: str = "127.0.0.1"
    port: int = API_PORT


@dataclass
class Config:
    """Main configuration class."""

    chain: ChainSettings = field(default_factory=ChainSettings)
    auth: AuthSettings = field(default_factory=AuthSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    api: ApiSettings = field(default_factory=ApiSettings)


# Global configuration instance
config = Config()


def get_current_network() -> Dict[str, object]:
    """Return the active network preset."""
    return {
        "key": ZKP_NETWORK,
        "name": _SELECTED["name"],
        "chain_id": CHAIN_ID,
        "rpc_url": RPC_URL,
        "explorer_url": EXPLORER_URL,
        "verifier_address": VERIFIER_ADDRESS,
        "membership_address": MEMBERSHIP_ADDRESS,
    }
