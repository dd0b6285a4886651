"""
ZKP Login Test Configuration
============================

[QA] Central pytest configuration with fixtures for all test types:
- Unit tests: Isolated, no I/O, fast
- Integration tests: HTTP adapter over a temp database
- E2E tests: Full login flow against a fake chain

[FIXTURES]
- mock_chain: Fake web3 with programmable verifier/membership contracts
- chain_client: ChainClient bound to mock_chain
- signing_key: Deterministic service key
- account_store: Per-test in-memory AccountStore
- login_service: Fully wired LoginService

Usage:
    pytest tests/unit/          # Fast unit tests
    pytest tests/integration/   # HTTP adapter tests
    pytest tests/e2e/           # Login scenarios
"""

import sys
import json
import shutil
import tempfile
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from eth_abi import encode as abi_encode
from web3 import Web3
from web3.exceptions import MismatchedABI

VERIFIER_ADDRESS = "0x7587CA385f1e10c411638003dA0f1bd3C99b919e"
MEMBERSHIP_ADDRESS = "0x2A152405afB201258D66919570BbD4625455a65f"

# EIP-55 reference address; doubles as the wallet derived from test proofs
WALLET_A = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
WALLET_B = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"

TEST_SIGNING_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

PROOF_TEXT = "1,2,3,4,5,6,7,8,9"


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (I/O, slower)")
    config.addinivalue_line("markers", "e2e: End-to-end tests (full stack)")


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests based on their path."""
    for item in items:
        path = str(item.fspath)
        if "/unit/" in path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in path:
            item.add_marker(pytest.mark.e2e)


# ============================================================================
# Logging Configuration
# ============================================================================

@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Configure logging for tests."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    # Silence noisy loggers during tests
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("web3").setLevel(logging.WARNING)


# ============================================================================
# Temporary Directory Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp(prefix="zkp_test_"))
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(scope="function")
def isolated_db_file(temp_dir: Path) -> Generator[Path, None, None]:
    """Create isolated database file for persistence tests."""
    db_path = temp_dir / "test_accounts.db"
    yield db_path
    if db_path.exists():
        db_path.unlink()


# ============================================================================
# Mock Chain
# ============================================================================

class MockFunctionCall:
    """Bound contract call: .call() for eth_call, .build_transaction() for commits."""

    def __init__(self, chain: "MockWeb3", name: str, args: Tuple[Any, ...], contract_address: str):
        self.chain = chain
        self.name = name
        self.args = args
        self.contract_address = contract_address

    def call(self, tx: Optional[Dict[str, Any]] = None) -> Any:
        self.chain.calls.append((self.name, self.args, tx))
        error = self.chain.errors.get(self.name)
        if error is not None:
            raise error
        return self.chain.result_for(self.name, self.args)

    def build_transaction(self, params: Dict[str, Any]) -> Dict[str, Any]:
        tx = dict(params)
        tx.setdefault("value", 0)
        tx["to"] = self.contract_address
        tx["data"] = "0x43753b4d"  # verifyProof selector
        self.chain.built_transactions.append(tx)
        return tx


class MockFunctions:
    def __init__(self, chain: "MockWeb3", address: str, names: List[str]):
        self._chain = chain
        self._address = address
        self._names = names

    def __getattr__(self, name: str):
        if name.startswith("_") or name not in self._names:
            raise AttributeError(name)

        def _bind(*args):
            if name == "verifyProof":
                for value in _flatten(args):
                    if not isinstance(value, int) or value < 0 or value >= 2**256:
                        raise MismatchedABI(f"Could not identify the intended function with name `{name}`")
            return MockFunctionCall(self._chain, name, args, self._address)

        return _bind


def _flatten(values):
    for value in values:
        if isinstance(value, (list, tuple)):
            yield from _flatten(value)
        else:
            yield value


class MockContract:
    def __init__(self, chain: "MockWeb3", address: str, abi: List[Dict[str, Any]]):
        self.address = address
        self.abi = abi
        names = [item["name"] for item in abi if item.get("type") == "function"]
        self.functions = MockFunctions(chain, address, names)


class MockWeb3:
    """
    Mock Web3 provider for testing without real blockchain.

    [FEATURES]
    - Programmable verifyProof / getHashStatus / checkDetailedMembership results
    - Per-function error injection
    - Tracks eth_calls and broadcast transactions
    - Mimics Base chainId
    """

    def __init__(self, chain_id: int = 8453):
        self.chain_id = chain_id
        self.nonces: Dict[str, int] = {}
        self.calls: List[Tuple[str, Tuple[Any, ...], Optional[Dict[str, Any]]]] = []
        self.sent_transactions: List[bytes] = []
        self.built_transactions: List[Dict[str, Any]] = []
        self.errors: Dict[str, Exception] = {}
        self.send_error: Optional[Exception] = None

        # Programmable results
        self.verify_result: Any = (WALLET_A, True)
        self.hash_statuses: Dict[bytes, Tuple[bool, str, bool]] = {}
        self.memberships: Dict[Tuple[str, str], Tuple[bool, bool, bool, bool]] = {}

        # Setup mock structure
        self.eth = MagicMock()
        self.eth.chain_id = chain_id
        self.eth.gas_price = 1_000_000_000  # 1 Gwei
        self.eth.contract = self._contract
        self.eth.get_transaction_count = self._get_nonce
        self.eth.send_raw_transaction = self._send_transaction

    def is_connected(self) -> bool:
        return True

    def _contract(self, address: str, abi: List[Dict[str, Any]]) -> MockContract:
        return MockContract(self, address, abi)

    def _get_nonce(self, address: str, block_identifier: str = "latest") -> int:
        return self.nonces.get(address.lower(), 0)

    def _send_transaction(self, raw_tx: bytes) -> bytes:
        """Simulate broadcasting a signed transaction."""
        if self.send_error is not None:
            raise self.send_error
        self.sent_transactions.append(bytes(raw_tx))
        return Web3.keccak(raw_tx)

    def result_for(self, name: str, args: Tuple[Any, ...]) -> Any:
        if name == "verifyProof":
            return self.verify_result
        if name == "getHashStatus":
            return self.hash_statuses.get(args[0], (False, "0x" + "0" * 40, False))
        if name == "checkDetailedMembership":
            member, club = args
            return self.memberships.get((member.lower(), club), (False, False, False, False))
        raise AssertionError(f"unexpected call {name}")

    def set_membership(self, address: str, club: str = "ai", permanent: bool = False,
                       temporary: bool = False, token_based: bool = False,
                       cross_chain: bool = False) -> None:
        self.memberships[(address.lower(), club)] = (permanent, temporary, token_based, cross_chain)

    def set_hash_status(self, hash_identifier: int, is_active: bool, exists: bool,
                        deployer: str = WALLET_A) -> None:
        self.hash_statuses[hash_identifier.to_bytes(32, "big")] = (is_active, deployer, exists)

    def call_names(self) -> List[str]:
        return [name for name, _, _ in self.calls]


@pytest.fixture(scope="function")
def mock_chain() -> MockWeb3:
    """
    Mock blockchain for verifier/membership tests.

    [USAGE]
        def test_login(mock_chain):
            mock_chain.set_membership(WALLET_A, permanent=True)
    """
    return MockWeb3()


# ============================================================================
# Local JSON-RPC Node
# ============================================================================

def _selector(signature: str) -> str:
    return Web3.to_hex(Web3.keccak(text=signature)[:4])


SELECTORS = {
    "verifyProof": _selector("verifyProof(uint256[2],uint256[2][2],uint256[2],uint256[1])"),
    "getHashStatus": _selector("getHashStatus(bytes32)"),
    "checkDetailedMembership": _selector("checkDetailedMembership(address,string)"),
}


class JsonRpcNode:
    """
    Minimal Ethereum JSON-RPC endpoint on 127.0.0.1 for tests that drive a
    real Web3(HTTPProvider).

    [FEATURES]
    - eth_call answered per contract function (ABI-encoded result or revert)
    - eth_chainId / eth_getTransactionCount / eth_gasPrice / eth_sendRawTransaction
    - Per-method error injection
    - stall(): accept requests and never answer until stop()
    """

    def __init__(self, chain_id: int = 8453):
        self.chain_id = chain_id
        self.nonce = 0
        self.gas_price = 1_000_000_000
        self.requests: List[Dict[str, Any]] = []
        self.raw_transactions: List[str] = []
        self.results: Dict[str, Dict[str, Any]] = {}
        self.errors: Dict[str, Dict[str, Any]] = {}
        self._stalled = False
        self._release = threading.Event()
        self._server = ThreadingHTTPServer(("127.0.0.1", 0), _rpc_handler(self))
        self._server.daemon_threads = True
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    @property
    def url(self) -> str:
        host, port = self._server.server_address[:2]
        return f"http://{host}:{port}"

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._release.set()
        self._server.shutdown()
        self._server.server_close()

    def stall(self) -> None:
        self._stalled = True

    def set_result(self, function: str, types: List[str], values: List[Any]) -> None:
        self.results[function] = {"result": "0x" + abi_encode(types, values).hex()}

    def revert(self, function: str, message: str = "execution reverted") -> None:
        self.results[function] = {"error": {"code": 3, "message": message}}

    def methods(self) -> List[str]:
        return [r["method"] for r in self.requests if r["method"] != "eth_chainId"]

    def calls_to(self, function: str) -> List[Dict[str, Any]]:
        """eth_call transaction objects addressed to one contract function."""
        selector = SELECTORS[function]
        return [
            r["params"][0] for r in self.requests
            if r["method"] == "eth_call" and _call_data(r["params"][0]).startswith(selector)
        ]

    def answer(self, request: Dict[str, Any]) -> Dict[str, Any]:
        method = request["method"]
        params = request.get("params") or []
        reply: Dict[str, Any] = {"jsonrpc": "2.0", "id": request.get("id")}

        if method in self.errors:
            reply["error"] = self.errors[method]
        elif method == "eth_chainId":
            reply["result"] = hex(self.chain_id)
        elif method == "eth_getTransactionCount":
            reply["result"] = hex(self.nonce)
        elif method == "eth_gasPrice":
            reply["result"] = hex(self.gas_price)
        elif method == "eth_sendRawTransaction":
            self.raw_transactions.append(params[0])
            reply["result"] = Web3.to_hex(Web3.keccak(hexstr=params[0]))
        elif method == "eth_call":
            reply.update(self._contract_call(_call_data(params[0])))
        else:
            reply["error"] = {"code": -32601, "message": f"method not found: {method}"}
        return reply

    def _contract_call(self, data: str) -> Dict[str, Any]:
        for function, selector in SELECTORS.items():
            if data.startswith(selector) and function in self.results:
                return self.results[function]
        return {"error": {"code": -32000, "message": "no result configured"}}

    def wait_released(self) -> None:
        if self._stalled:
            self._release.wait(30)


def _call_data(tx: Dict[str, Any]) -> str:
    return tx.get("data") or tx.get("input") or "0x"


def _rpc_handler(node: JsonRpcNode):
    class Handler(BaseHTTPRequestHandler):
        def do_POST(self):
            length = int(self.headers.get("Content-Length", 0))
            request = json.loads(self.rfile.read(length))
            node.requests.append(request)

            if node._stalled:
                node.wait_released()
                return

            body = json.dumps(node.answer(request)).encode()
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            pass

    return Handler


@pytest.fixture(scope="function")
def rpc_node(monkeypatch) -> Generator[JsonRpcNode, None, None]:
    """
    Local JSON-RPC node.

    [USAGE]
        def test_call(rpc_node, rpc_chain_client):
            rpc_node.set_result("getHashStatus", ["bool", "address", "bool"], [...])
    """
    # Never route loopback requests through an environment proxy
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
    monkeypatch.setenv("no_proxy", "127.0.0.1,localhost")

    node = JsonRpcNode()
    node.start()
    yield node
    node.stop()


@pytest.fixture(scope="function")
def rpc_chain_client(chain_settings, rpc_node):
    """ChainClient dialing rpc_node through a real HTTPProvider."""
    from chain.client import ChainClient

    chain_settings.rpc_url = rpc_node.url
    chain_settings.call_timeout = 5.0
    return ChainClient(chain_settings)


@pytest.fixture(scope="function")
def chain_settings():
    from config import ChainSettings

    return ChainSettings(
        rpc_url="http://localhost:8545",
        chain_id=8453,
        explorer_url="",
        verifier_address=VERIFIER_ADDRESS,
        membership_address=MEMBERSHIP_ADDRESS,
        call_timeout=30.0,
        gas_limit=300_000,
    )


@pytest.fixture(scope="function")
def chain_client(chain_settings, mock_chain):
    from chain.client import ChainClient

    return ChainClient(chain_settings, web3=mock_chain)


@pytest.fixture(scope="function")
def signing_key() -> str:
    return TEST_SIGNING_KEY


# ============================================================================
# Auth Fixtures
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def account_store():
    """Create isolated AccountStore instance."""
    from auth.accounts import AccountStore

    store = AccountStore(":memory:")
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture(scope="function")
def auth_config(chain_settings, signing_key):
    from config import ApiSettings, AuthSettings, Config, StorageSettings

    return Config(
        chain=chain_settings,
        auth=AuthSettings(signing_key=signing_key, register_enabled=True, club_name="ai"),
        storage=StorageSettings(database_path=":memory:"),
        api=ApiSettings(),
    )


@pytest_asyncio.fixture(scope="function")
async def login_service(auth_config, chain_client, account_store):
    """Fully wired LoginService over the mock chain."""
    from auth.service import build_login_service

    return build_login_service(auth_config, chain=chain_client, accounts=account_store)
