"""
Contract ABIs
=============

[CHAIN] Interface descriptors for the two contracts the login flow talks to.

Kept as JSON text and parsed once by ChainClient, so a malformed descriptor
fails at startup with ABIError rather than on the first login.
"""

import json
from typing import Any, Dict, List

from core.errors import ABIError

VERIFIER_ABI_JSON = """[
    {
        "inputs": [
            {"type": "uint256[2]", "name": "a"},
            {"type": "uint256[2][2]", "name": "b"},
            {"type": "uint256[2]", "name": "c"},
            {"type": "uint256[1]", "name": "input"}
        ],
        "name": "verifyProof",
        "outputs": [
            {"type": "address", "name": "hashDeployer"},
            {"type": "bool", "name": "isValid"}
        ],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [{"type": "bytes32", "name": "_hash"}],
        "name": "getHashStatus",
        "outputs": [
            {"type": "bool", "name": "isActive"},
            {"type": "address", "name": "deployer"},
            {"type": "bool", "name": "exists"}
        ],
        "stateMutability": "view",
        "type": "function"
    }
]"""

MEMBERSHIP_ABI_JSON = """[
    {
        "inputs": [
            {"type": "address", "name": "member"},
            {"type": "string", "name": "domainName"}
        ],
        "name": "checkDetailedMembership",
        "outputs": [
            {"type": "bool", "name": "isPermanent"},
            {"type": "bool", "name": "isTemporary"},
            {"type": "bool", "name": "isTokenBased"},
            {"type": "bool", "name": "isCrossChain"}
        ],
        "stateMutability": "view",
        "type": "function"
    }
]"""

# Entry points each descriptor must expose
REQUIRED_FUNCTIONS = {
    "verifier": ("verifyProof", "getHashStatus"),
    "membership": ("checkDetailedMembership",),
}


def parse_abi(abi_json: str, name: str) -> List[Dict[str, Any]]:
    """
    Parse and sanity-check an ABI descriptor.

    Raises:
        ABIError: invalid JSON, wrong shape, or a required function missing
    """
    try:
        abi = json.loads(abi_json)
    except json.JSONDecodeError as e:
        raise ABIError(f"{name} ABI is not valid JSON: {e}") from e

    if not isinstance(abi, list) or not all(isinstance(item, dict) for item in abi):
        raise ABIError(f"{name} ABI must be a list of objects")

    functions = {item.get("name") for item in abi if item.get("type") == "function"}
    missing = [fn for fn in REQUIRED_FUNCTIONS.get(name, ()) if fn not in functions]
    if missing:
        raise ABIError(f"{name} ABI is missing functions: {', '.join(missing)}")

    return abi
