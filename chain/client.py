"""
Chain Client
============

[CHAIN] Connection to the Base RPC node plus the two bound contracts.

[LIFECYCLE] One ChainClient per process, built at startup and handed to every
component. The web3 connection and the parsed contracts are initialized at
most once per instance; concurrent first callers wait on a lock and all see
the same result, including a cached failure. There is no reconnection.

[TIMEOUTS] Every RPC goes through the HTTP provider with a fixed request
timeout and provider-level retries disabled, so a call fails within
call_timeout. Use call_bounded() to translate library exceptions:
- requests timeout -> ChainTimeout
- contract revert -> ContractReverted
- undecodable return data -> ChainDecodeError
- anything else -> ChainCallError

[USAGE]
    client = create_chain_client(config.chain)
    verifier, membership = client.abis()
    result = client.call_bounded(verifier.functions.getHashStatus(h).call)
"""

import logging
import threading
from typing import Any, Callable, Optional, Tuple, TypeVar

import requests
from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError, TimeExhausted

from chain.abi import MEMBERSHIP_ABI_JSON, VERIFIER_ABI_JSON, parse_abi
from config import ChainSettings
from core.errors import (
    ABIError,
    ChainCallError,
    ChainConnectError,
    ChainDecodeError,
    ChainError,
    ChainTimeout,
    ContractReverted,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChainClient:
    """
    Lazily initialized web3 connection and contract bindings.

    Args:
        settings: chain parameters (RPC URL, chain id, addresses, timeout)
        web3: pre-built Web3 instance (tests inject a fake here)
    """

    def __init__(self, settings: ChainSettings, web3: Optional[Any] = None):
        self.settings = settings
        self._lock = threading.Lock()

        self._w3 = web3
        self._dial_done = web3 is not None
        self._dial_error: Optional[ChainConnectError] = None

        self._contracts: Optional[Tuple[Any, Any]] = None
        self._abi_done = False
        self._abi_error: Optional[ChainError] = None

    @property
    def chain_id(self) -> int:
        return self.settings.chain_id

    def dial(self) -> Any:
        """
        Return the Web3 connection, creating it on first use.

        Raises:
            ChainConnectError: provider could not be created (cached forever)
        """
        with self._lock:
            if not self._dial_done:
                self._dial_done = True
                try:
                    self._w3 = Web3(Web3.HTTPProvider(
                        self.settings.rpc_url,
                        request_kwargs={"timeout": self.settings.call_timeout},
                        # One attempt per call: the timeout is the whole budget
                        exception_retry_configuration=None,
                    ))
                    logger.info(f"[CHAIN] Provider ready: chain {self.settings.chain_id}")
                except Exception as e:
                    self._dial_error = ChainConnectError(
                        f"failed to connect to ethereum client: {e}"
                    )
                    logger.error(f"[CHAIN] {self._dial_error}")

            if self._dial_error is not None:
                raise self._dial_error
            return self._w3

    def abis(self) -> Tuple[Any, Any]:
        """
        Return (verifier_contract, membership_contract), binding them on first use.

        Raises:
            ChainConnectError: connection unavailable
            ABIError: descriptor invalid or address malformed (cached forever)
        """
        w3 = self.dial()

        with self._lock:
            if not self._abi_done:
                self._abi_done = True
                try:
                    verifier = w3.eth.contract(
                        address=Web3.to_checksum_address(self.settings.verifier_address),
                        abi=parse_abi(VERIFIER_ABI_JSON, "verifier"),
                    )
                    membership = w3.eth.contract(
                        address=Web3.to_checksum_address(self.settings.membership_address),
                        abi=parse_abi(MEMBERSHIP_ABI_JSON, "membership"),
                    )
                    self._contracts = (verifier, membership)
                    logger.info(
                        f"[CHAIN] Bound verifier={self.settings.verifier_address} "
                        f"membership={self.settings.membership_address}"
                    )
                except ABIError as e:
                    self._abi_error = e
                except (ValueError, TypeError) as e:
                    self._abi_error = ABIError(f"failed to parse ABI: {e}")

                if self._abi_error is not None:
                    logger.error(f"[CHAIN] {self._abi_error}")

            if self._abi_error is not None:
                raise self._abi_error
            return self._contracts

    def call_bounded(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Run a blocking RPC and normalize its failure modes.

        The timeout itself is enforced by the provider's request timeout.
        """
        try:
            return fn(*args, **kwargs)
        except ChainError:
            raise
        except (requests.exceptions.Timeout, TimeExhausted) as e:
            raise ChainTimeout(
                f"call exceeded {self.settings.call_timeout:g}s timeout"
            ) from e
        except ContractLogicError as e:
            raise ContractReverted(f"execution reverted: {e}") from e
        except BadFunctionCallOutput as e:
            raise ChainDecodeError(f"failed to unpack result: {e}") from e
        except Exception as e:
            raise ChainCallError(str(e) or type(e).__name__) from e


def create_chain_client(settings: ChainSettings) -> ChainClient:
    """
    Build a ChainClient and initialize it eagerly.

    Failures are logged and cached on the client; components see them as
    ChainConnectError / ABIError on first use.
    """
    client = ChainClient(settings)
    try:
        client.abis()
    except ChainError as e:
        logger.warning(f"[CHAIN] ZKP login unavailable: {e}")
    return client
