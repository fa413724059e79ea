"""Shared test fixtures."""

import pytest

from src.mp_claim.infrastructure.in_memory import ClaimClient, InMemoryClaimModule
from src.mp_collection.infrastructure.in_memory import (
    InMemoryCollection,
    InMemoryContractDirectory,
)
from src.mp_common.enums import ClaimAction
from src.mp_escrow.domain.ledger import Bank
from src.mp_matching.domain.models import MarketplaceParams
from src.mp_matching.engine.engine import MatchingEngine
from tests.constants import ADMIN, BUYER, BUYER2, COLLECTION, CREATOR, MARKETPLACE


@pytest.fixture
def params() -> MarketplaceParams:
    return MarketplaceParams(address=MARKETPLACE, admin=ADMIN, trading_fee_bps=200)


@pytest.fixture
def collection() -> InMemoryCollection:
    coll = InMemoryCollection(address=COLLECTION, minter=CREATOR)
    for token_id in (1, 2, 3):
        coll.mint(CREATOR, token_id, CREATOR)
        coll.approve(CREATOR, MARKETPLACE, token_id)
    return coll


@pytest.fixture
def contracts(collection: InMemoryCollection) -> InMemoryContractDirectory:
    directory = InMemoryContractDirectory()
    directory.add_collection(collection)
    return directory


@pytest.fixture
def claims() -> InMemoryClaimModule:
    module = InMemoryClaimModule()
    module.allow(MARKETPLACE, ClaimAction.BID_NFT)
    module.set_claim_record(BUYER, 1_000_000_000)
    return module


@pytest.fixture
def bank() -> Bank:
    b = Bank()
    b.deposit(BUYER, 2_000_000_000)
    b.deposit(BUYER2, 2_000_000_000)
    return b


@pytest.fixture
def market(
    params: MarketplaceParams,
    bank: Bank,
    contracts: InMemoryContractDirectory,
    claims: InMemoryClaimModule,
) -> MatchingEngine:
    return MatchingEngine(params, bank, contracts, ClaimClient(claims, MARKETPLACE))
