"""
ZKP Login Service
=================

[LIFECYCLE] Wires every component from one Config at process start:
ChainClient -> ProofVerifier / HashStatusChecker / MembershipGate
AccountStore + SessionLayer -> LoginOrchestrator

[USAGE]
    service = await create_login_service(config)
    result = await service.orchestrator.login(LoginRequest(proof_text))
    await service.close()
"""

import logging
from dataclasses import dataclass
from typing import Optional

from auth.accounts import AccountStore
from auth.login import LoginOrchestrator
from auth.session import MemorySessionLayer, SessionLayer
from chain.client import ChainClient, create_chain_client
from config import Config
from zkp.membership import MembershipGate
from zkp.status import HashStatusChecker
from zkp.verifier import ProofVerifier

logger = logging.getLogger(__name__)


@dataclass
class LoginService:
    config: Config
    chain: ChainClient
    verifier: ProofVerifier
    status_checker: HashStatusChecker
    membership: MembershipGate
    accounts: AccountStore
    sessions: SessionLayer
    orchestrator: LoginOrchestrator

    async def close(self) -> None:
        await self.accounts.close()


def build_login_service(
    cfg: Config,
    chain: Optional[ChainClient] = None,
    accounts: Optional[AccountStore] = None,
    sessions: Optional[SessionLayer] = None,
) -> LoginService:
    """Construct the component graph without touching the database."""
    chain = chain or create_chain_client(cfg.chain)
    accounts = accounts or AccountStore(cfg.storage.database_path)
    sessions = sessions or MemorySessionLayer()

    verifier = ProofVerifier(chain, cfg.auth.signing_key, gas_limit=cfg.chain.gas_limit)
    membership = MembershipGate(chain, cfg.auth.club_name)
    status_checker = HashStatusChecker(chain)

    if not verifier.enabled:
        logger.warning("[AUTH] ZKP_PRIVATE_KEY not set: ZKP login disabled")

    return LoginService(
        config=cfg,
        chain=chain,
        verifier=verifier,
        status_checker=status_checker,
        membership=membership,
        accounts=accounts,
        sessions=sessions,
        orchestrator=LoginOrchestrator(verifier, membership, accounts, sessions, cfg.auth),
    )


async def create_login_service(cfg: Config, **overrides) -> LoginService:
    """Build the service and open the account store."""
    service = build_login_service(cfg, **overrides)
    await service.accounts.initialize()
    return service
