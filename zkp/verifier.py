"""
Proof Verifier
==============

[ZKP] Verifies a Groth16 proof on-chain and records it.

[FLOW]
1. Simulate verifyProof with eth_call; decode (hashDeployer, isValid)
2. Only if valid: sign and broadcast the same call as a transaction
   with the service key (pending nonce, suggested gas price, fixed gas limit)
3. Return hashDeployer as the caller's wallet plus the transaction hash

[NONCE] All commits from one signing key go through a single lock, so only
one transaction is between nonce fetch and broadcast at any time.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import MismatchedABI, Web3ValidationError

from chain.client import ChainClient
from core.errors import (
    ChainDecodeError,
    ChainError,
    ConfigMissing,
    PackError,
    ProofInvalid,
    SimulationFailed,
    SubmitFailed,
)
from zkp.codec import ProofPayload

logger = logging.getLogger(__name__)

GAS_LIMIT_TX = 300_000


@dataclass(frozen=True)
class VerificationOutcome:
    """Result of a successful verify: derived wallet and on-chain record."""
    wallet_address: str
    transaction_hash: str


class ProofVerifier:
    """
    Two-phase (simulate, then commit) verifier for the ZKP contract.

    Args:
        client: shared ChainClient
        signing_key: service private key (hex, 0x optional)
        gas_limit: gas ceiling for the commit transaction
    """

    def __init__(self, client: ChainClient, signing_key: str, gas_limit: int = GAS_LIMIT_TX):
        self.client = client
        self._signing_key = signing_key
        self.gas_limit = gas_limit
        self._signer: Optional[LocalAccount] = None
        self._submit_lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self._signing_key)

    def signer(self) -> LocalAccount:
        """
        Return the service account.

        Raises:
            ConfigMissing: key absent or not a valid secp256k1 key
        """
        if not self._signing_key:
            raise ConfigMissing("ZKP_PRIVATE_KEY not configured")

        if self._signer is None:
            try:
                self._signer = Account.from_key(self._signing_key)
            except Exception as e:
                # Never include the key itself in the message
                raise ConfigMissing(f"invalid private key: {type(e).__name__}") from None
        return self._signer

    def verify(self, payload: ProofPayload) -> VerificationOutcome:
        """
        Verify and record a proof.

        Raises:
            ConfigMissing, ChainConnectError, ABIError: deployment unusable
            PackError: payload does not fit the ABI
            SimulationFailed: eth_call failed
            ProofInvalid: contract says the proof is invalid
            SubmitFailed: transaction could not be signed or broadcast
        """
        signer = self.signer()
        w3 = self.client.dial()
        verifier, _ = self.client.abis()

        try:
            fn = verifier.functions.verifyProof(*payload.as_call_args())
        except (MismatchedABI, Web3ValidationError, TypeError, ValueError) as e:
            raise PackError(f"failed to pack call data: {e}") from e

        # Phase 1: simulate
        try:
            result = self.client.call_bounded(fn.call, {"from": signer.address})
        except ChainDecodeError as e:
            raise ProofInvalid(str(e)) from e
        except ChainError as e:
            raise SimulationFailed(f"contract call simulation failed: {e}") from e

        wallet_address = self._decode_result(result)
        logger.info(f"[ZKP] Proof {payload.hash_identifier} valid for {wallet_address}")

        # Phase 2: commit
        with self._submit_lock:
            try:
                tx_hash = self.client.call_bounded(self._commit, w3, fn, signer)
            except ChainError as e:
                logger.error(f"[ZKP] Commit failed for {wallet_address}: {e}")
                raise SubmitFailed(
                    f"failed to send transaction: {e}",
                    wallet_address=wallet_address,
                ) from e

        logger.info(f"[ZKP] verifyProof recorded: {tx_hash}")
        return VerificationOutcome(wallet_address=wallet_address, transaction_hash=tx_hash)

    @staticmethod
    def _decode_result(result: Any) -> str:
        if not isinstance(result, (list, tuple)) or len(result) != 2:
            raise ProofInvalid("unexpected output length from verifyProof")

        hash_deployer, is_valid = result
        if not isinstance(is_valid, bool):
            raise ProofInvalid("failed to parse isValid from result")
        if not isinstance(hash_deployer, str) or not Web3.is_address(hash_deployer):
            raise ProofInvalid("failed to parse hashDeployer from result")
        if not is_valid:
            raise ProofInvalid("proof verification failed")

        return Web3.to_checksum_address(hash_deployer)

    def _commit(self, w3: Any, fn: Any, signer: LocalAccount) -> str:
        """Build, sign and broadcast the verifyProof transaction."""
        tx = fn.build_transaction({
            "from": signer.address,
            "nonce": w3.eth.get_transaction_count(signer.address, "pending"),
            "gas": self.gas_limit,
            "gasPrice": w3.eth.gas_price,
            "chainId": self.client.chain_id,
        })

        signed = signer.sign_transaction(tx)
        tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

