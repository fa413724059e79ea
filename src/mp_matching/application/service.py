# src/mp_matching/application/service.py
import asyncio

from config.settings import settings
from src.mp_claim.infrastructure.in_memory import ClaimClient, InMemoryClaimModule
from src.mp_collection.infrastructure.in_memory import InMemoryContractDirectory
from src.mp_common.enums import ClaimAction
from src.mp_escrow.domain.ledger import Bank
from src.mp_matching.domain.models import MarketplaceParams
from src.mp_matching.engine.engine import MatchingEngine

_engine: MatchingEngine | None = None
_lock = asyncio.Lock()
contracts = InMemoryContractDirectory()
claims = InMemoryClaimModule()


def get_marketplace() -> MatchingEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        params = MarketplaceParams.from_settings(settings)
        claims.allow(params.address, ClaimAction.BID_NFT)
        _engine = MatchingEngine(params, Bank(), contracts, ClaimClient(claims, params.address))
    return _engine


def get_contracts() -> InMemoryContractDirectory:
    """The directory the engine resolves collections and hooks through."""
    return contracts


def get_engine_lock() -> asyncio.Lock:
    """One request at a time touches the engine."""
    return _lock
