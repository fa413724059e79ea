# src/mp_marketplace/application/service.py
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_collection.infrastructure.in_memory import InMemoryContractDirectory
from src.mp_collection.infrastructure.persistence import CollectionStateRepository
from src.mp_common.coins import Coin
from src.mp_common.errors import InternalError
from src.mp_marketplace.application.schemas import (
    AskResponse,
    BidResponse,
    CancelBidResponse,
    CoinSchema,
    ConfigResponse,
    DepositRequest,
    DepositResponse,
    HooksResponse,
    PlaceBidResponse,
    SaleResponse,
    SetAskRequest,
    SetBidRequest,
    SweepResponse,
)
from src.mp_marketplace.infrastructure.persistence import MarketplaceStateRepository
from src.mp_matching.domain.models import PlaceBidResult
from src.mp_matching.engine.engine import MarketplaceSnapshot, MatchingEngine
from src.mp_orderbook.domain.models import Ask, Bid

logger = logging.getLogger(__name__)

_repo = MarketplaceStateRepository()
_collection_repo = CollectionStateRepository()


def _coin(c: Coin) -> CoinSchema:
    return CoinSchema(amount=c.amount, denom=c.denom)


def _ask_to_response(ask: Ask) -> AskResponse:
    return AskResponse(
        collection=ask.collection,
        token_id=ask.token_id,
        seller=ask.seller,
        price=_coin(ask.price),
        expires=ask.expires,
    )


def _bid_to_response(bid: Bid) -> BidResponse:
    return BidResponse(
        collection=bid.collection,
        token_id=bid.token_id,
        bidder=bid.bidder,
        amount=_coin(bid.amount),
        expires=bid.expires,
    )


def _build_place_bid_response(result: PlaceBidResult) -> PlaceBidResponse:
    sale = None
    if result.sale is not None:
        ev = result.sale.event
        sale = SaleResponse(
            collection=ev.collection,
            token_id=ev.token_id,
            seller=ev.seller,
            buyer=ev.buyer,
            price=_coin(ev.price),
            fee=result.sale.fee,
            royalty=result.sale.royalty,
            seller_amount=result.sale.seller_amount,
        )
    return PlaceBidResponse(
        status=result.status.value,
        bid=_bid_to_response(result.bid),
        sale=sale,
        hook_failures=[f"{f.address}: {f.error}" for f in result.hook_failures],
        claim_error=result.claim_error,
    )


# --- execute ---

def set_ask(engine: MatchingEngine, req: SetAskRequest, sender: str, now: int) -> AskResponse:
    ask = engine.place_ask(
        req.collection,
        req.token_id,
        sender,
        Coin(req.price.amount, req.price.denom),
        req.expires,
        now,
    )
    return _ask_to_response(ask)


def set_bid(engine: MatchingEngine, req: SetBidRequest, sender: str, now: int) -> PlaceBidResponse:
    result = engine.place_bid(
        req.collection,
        req.token_id,
        sender,
        Coin(req.funds.amount, req.funds.denom),
        req.expires,
        now,
    )
    return _build_place_bid_response(result)


def remove_ask(engine: MatchingEngine, collection: str, token_id: int, sender: str) -> AskResponse:
    return _ask_to_response(engine.cancel_ask(collection, token_id, sender))


def remove_bid(
    engine: MatchingEngine, collection: str, token_id: int, sender: str
) -> CancelBidResponse:
    refunded = engine.cancel_bid(collection, token_id, sender)
    return CancelBidResponse(collection=collection, token_id=token_id, refunded=refunded)


def sweep_expired(engine: MatchingEngine, now: int) -> SweepResponse:
    result = engine.remove_expired(now)
    return SweepResponse(
        asks_removed=len(result.asks),
        bids_removed=len(result.bids),
        refunded=result.refunded,
    )


def add_sale_hook(engine: MatchingEngine, hook: str, sender: str) -> HooksResponse:
    engine.add_hook(sender, hook)
    return HooksResponse(hooks=engine.hooks.hooks)


def deposit(engine: MatchingEngine, req: DepositRequest, sender: str) -> DepositResponse:
    balance = engine.deposit(sender, req.account, req.amount)
    return DepositResponse(account=req.account, balance=balance)


# --- query ---

def get_ask(engine: MatchingEngine, collection: str, token_id: int, now: int) -> AskResponse | None:
    ask = engine.ask(collection, token_id, now)
    return _ask_to_response(ask) if ask is not None else None


def list_bids(engine: MatchingEngine, collection: str, token_id: int, now: int) -> list[BidResponse]:
    return [_bid_to_response(b) for b in engine.bids(collection, token_id, now)]


def get_config(engine: MatchingEngine) -> ConfigResponse:
    p = engine.params
    return ConfigResponse(
        address=p.address,
        admin=p.admin,
        denom=p.denom,
        trading_fee_bps=p.trading_fee_bps,
        min_ask_expiry=p.min_ask_expiry,
        max_ask_expiry=p.max_ask_expiry,
        min_bid_expiry=p.min_bid_expiry,
        max_bid_expiry=p.max_bid_expiry,
        developer=p.developer,
    )


# --- state ---

async def persist(
    engine: MatchingEngine, contracts: InMemoryContractDirectory, db: AsyncSession
) -> None:
    """Write the engine and collection state in one transaction.

    If the write fails the in-memory state is rolled back to the last
    committed snapshot, so memory never runs ahead of the database.
    """
    try:
        await _repo.save(engine.snapshot(), db)
        await _collection_repo.save(contracts, db)
        await db.commit()
    except SQLAlchemyError as exc:
        logger.exception("Marketplace state not saved, reloading last committed state")
        await db.rollback()
        await _reload(engine, contracts, db)
        raise InternalError("marketplace state could not be saved") from exc


async def load(
    engine: MatchingEngine, contracts: InMemoryContractDirectory, db: AsyncSession
) -> bool:
    snap = await _repo.load(db)
    if snap is None:
        return False
    engine.restore(snap)
    n_colls = await _collection_repo.load(contracts, db)
    logger.info(
        "Marketplace state loaded: asks=%d bids=%d collections=%d",
        len(snap.asks), len(snap.bids), n_colls,
    )
    return True


async def _reload(
    engine: MatchingEngine, contracts: InMemoryContractDirectory, db: AsyncSession
) -> None:
    if not await load(engine, contracts, db):
        # nothing was ever committed
        engine.restore(MarketplaceSnapshot())
        contracts.replace_collections([])
