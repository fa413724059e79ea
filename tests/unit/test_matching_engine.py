"""MatchingEngine scenarios: listing, bidding, settlement, expiry and collaborators."""

from dataclasses import replace

import pytest

from src.mp_claim.infrastructure.in_memory import ClaimClient, InMemoryClaimModule
from src.mp_clearing.domain.invariants import verify_conservation, verify_escrow_invariants
from src.mp_collection.domain.models import RoyaltyInfo
from src.mp_collection.infrastructure.in_memory import (
    InMemoryCollection,
    InMemoryContractDirectory,
)
from src.mp_common.coins import Coin
from src.mp_common.enums import ClaimAction, PlaceBidStatus
from src.mp_common.errors import (
    AlreadyListedError,
    CollectionNotFoundError,
    DuplicateBidError,
    InsufficientBalanceError,
    InvalidConfigError,
    InvalidExpiryError,
    InvalidPriceError,
    OrderNotFoundError,
    SettlementFailedError,
    UnauthorizedError,
)
from src.mp_escrow.domain.ledger import COMMUNITY_POOL_ADDRESS, Bank
from src.mp_hooks.domain.models import SaleEvent
from src.mp_matching.domain.models import MarketplaceParams
from src.mp_matching.engine.engine import MatchingEngine
from tests.constants import (
    ADMIN,
    BUYER,
    BUYER2,
    COLLECTION,
    CREATOR,
    DAY,
    MARKETPLACE,
    NOW,
    PRICE,
    ustars,
)


def _list(market: MatchingEngine, token_id: int = 1, price: int = PRICE, now: int = NOW) -> None:
    market.place_ask(COLLECTION, token_id, CREATOR, ustars(price), now + DAY, now)


def _check(market: MatchingEngine) -> None:
    verify_escrow_invariants(market.book, market.escrow)
    assert verify_conservation(market.bank, market.escrow) == []


class _HookRecorder:
    def __init__(self) -> None:
        self.events: list[SaleEvent] = []

    def on_sale_finalized(self, event: SaleEvent) -> None:
        self.events.append(event)


class _FailingHook:
    def on_sale_finalized(self, event: SaleEvent) -> None:
        raise RuntimeError("hook down")


class TestConstruction:
    def test_invalid_params_rejected(
        self, params: MarketplaceParams, bank: Bank, contracts: InMemoryContractDirectory
    ) -> None:
        with pytest.raises(InvalidConfigError):
            MatchingEngine(replace(params, trading_fee_bps=20_000), bank, contracts)


class TestPlaceAsk:
    def test_owner_lists(self, market: MatchingEngine) -> None:
        _list(market)
        ask = market.ask(COLLECTION, 1, NOW)
        assert ask is not None
        assert ask.seller == CREATOR
        assert ask.price == ustars(PRICE)

    def test_asks_query_filters_expired(self, market: MatchingEngine) -> None:
        _list(market, token_id=1)
        market.place_ask(COLLECTION, 2, CREATOR, ustars(PRICE), NOW + 2 * DAY, NOW)
        assert [a.token_id for a in market.asks(COLLECTION)] == [1, 2]
        assert [a.token_id for a in market.asks(COLLECTION, NOW + DAY)] == [2]

    def test_non_owner_unauthorized(self, market: MatchingEngine) -> None:
        with pytest.raises(UnauthorizedError):
            market.place_ask(COLLECTION, 1, BUYER, ustars(PRICE), NOW + DAY, NOW)

    def test_unminted_token_unauthorized(self, market: MatchingEngine) -> None:
        with pytest.raises(UnauthorizedError):
            market.place_ask(COLLECTION, 99, CREATOR, ustars(PRICE), NOW + DAY, NOW)

    def test_unapproved_token_rejected(
        self, market: MatchingEngine, collection: InMemoryCollection
    ) -> None:
        collection.revoke(CREATOR, MARKETPLACE, 1)
        with pytest.raises(UnauthorizedError):
            _list(market)
        assert market.ask(COLLECTION, 1) is None

    def test_unapproved_token_never_blocks_a_bid(
        self, market: MatchingEngine, collection: InMemoryCollection, bank: Bank
    ) -> None:
        collection.mint(CREATOR, 4, CREATOR)
        with pytest.raises(UnauthorizedError):
            market.place_ask(COLLECTION, 4, CREATOR, ustars(PRICE), NOW + DAY, NOW)
        result = market.place_bid(COLLECTION, 4, BUYER, ustars(PRICE), NOW + DAY, NOW)
        assert result.status == PlaceBidStatus.PLACED
        assert result.sale is None
        assert market.bid(COLLECTION, 4, BUYER) == result.bid
        assert bank.balance_of(BUYER) == 2_000_000_000 - PRICE
        _check(market)

    def test_unknown_collection(self, market: MatchingEngine) -> None:
        with pytest.raises(CollectionNotFoundError):
            market.place_ask("stars1nope", 1, CREATOR, ustars(PRICE), NOW + DAY, NOW)

    def test_already_listed(self, market: MatchingEngine) -> None:
        _list(market)
        with pytest.raises(AlreadyListedError):
            _list(market, price=PRICE * 2)

    def test_expired_ask_can_be_relisted(self, market: MatchingEngine) -> None:
        _list(market)
        later = NOW + DAY
        _list(market, price=PRICE * 2, now=later)
        ask = market.ask(COLLECTION, 1, later)
        assert ask is not None and ask.price.amount == PRICE * 2

    def test_expiry_outside_window(self, market: MatchingEngine) -> None:
        with pytest.raises(InvalidExpiryError):
            market.place_ask(COLLECTION, 1, CREATOR, ustars(PRICE), NOW + 1, NOW)
        with pytest.raises(InvalidExpiryError):
            market.place_ask(COLLECTION, 1, CREATOR, ustars(PRICE), NOW + 181 * DAY, NOW)

    def test_wrong_denom(self, market: MatchingEngine) -> None:
        with pytest.raises(InvalidPriceError):
            market.place_ask(COLLECTION, 1, CREATOR, Coin(PRICE, "uatom"), NOW + DAY, NOW)


class TestPlaceBidMatch:
    def test_exact_bid_settles(
        self, market: MatchingEngine, bank: Bank, collection: InMemoryCollection
    ) -> None:
        market.place_ask(COLLECTION, 1, CREATOR, ustars(PRICE), NOW + 30 * DAY, NOW)
        result = market.place_bid(COLLECTION, 1, BUYER, ustars(PRICE), NOW + DAY, NOW)

        assert result.status == PlaceBidStatus.MATCHED
        assert result.sale is not None
        assert result.sale.fee == 20_000_000
        assert result.sale.seller_amount == 980_000_000
        assert collection.owner_of(1) == BUYER
        assert bank.balance_of(CREATOR) == 980_000_000
        assert bank.burned == 10_000_000
        assert bank.balance_of(COMMUNITY_POOL_ADDRESS) == 10_000_000
        assert bank.balance_of(BUYER) == 2_000_000_000 - PRICE
        assert market.ask(COLLECTION, 1) is None
        assert market.bid(COLLECTION, 1, BUYER) is None
        assert market.escrow.total_held() == 0
        _check(market)

    def test_sale_price_is_bid_amount(self, market: MatchingEngine, bank: Bank) -> None:
        _list(market)
        result = market.place_bid(COLLECTION, 1, BUYER, ustars(1_500_000_000), NOW + DAY, NOW)
        assert result.sale is not None
        assert result.sale.event.price == ustars(1_500_000_000)
        assert bank.balance_of(CREATOR) == 1_500_000_000 - 30_000_000

    def test_low_bid_stored(self, market: MatchingEngine, bank: Bank) -> None:
        _list(market)
        result = market.place_bid(COLLECTION, 1, BUYER, ustars(PRICE - 1), NOW + DAY, NOW)
        assert result.status == PlaceBidStatus.PLACED
        assert market.ask(COLLECTION, 1, NOW) is not None
        assert market.bid(COLLECTION, 1, BUYER, NOW) == result.bid
        assert bank.balance_of(BUYER) == 2_000_000_000 - (PRICE - 1)
        _check(market)

    def test_expired_ask_not_matched(
        self, market: MatchingEngine, collection: InMemoryCollection
    ) -> None:
        _list(market)
        later = NOW + DAY
        result = market.place_bid(COLLECTION, 1, BUYER, ustars(PRICE), later + DAY, later)
        assert result.status == PlaceBidStatus.PLACED
        assert collection.owner_of(1) == CREATOR
        assert market.ask(COLLECTION, 1, later) is None
        # expired but not swept
        assert market.ask(COLLECTION, 1) is not None

    def test_other_bids_survive_match(self, market: MatchingEngine) -> None:
        _list(market)
        market.place_bid(COLLECTION, 1, BUYER2, ustars(PRICE // 2), NOW + DAY, NOW)
        market.place_bid(COLLECTION, 1, BUYER, ustars(PRICE), NOW + DAY, NOW)
        assert [b.bidder for b in market.bids(COLLECTION, 1, NOW)] == [BUYER2]
        _check(market)

    def test_settlement_failure_is_atomic(
        self, market: MatchingEngine, bank: Bank, collection: InMemoryCollection
    ) -> None:
        _list(market)
        collection.revoke(CREATOR, "stars1marketplace", 1)
        with pytest.raises(SettlementFailedError):
            market.place_bid(COLLECTION, 1, BUYER, ustars(PRICE), NOW + DAY, NOW)
        assert market.ask(COLLECTION, 1, NOW) is not None
        assert market.bid(COLLECTION, 1, BUYER) is None
        assert bank.balance_of(BUYER) == 2_000_000_000
        assert bank.balance_of(CREATOR) == 0
        assert collection.owner_of(1) == CREATOR
        _check(market)

    def test_royalty_paid(
        self, market: MatchingEngine, bank: Bank, collection: InMemoryCollection
    ) -> None:
        collection.royalty = RoyaltyInfo(payment_address="stars1artist", share_bps=500)
        _list(market)
        result = market.place_bid(COLLECTION, 1, BUYER, ustars(PRICE), NOW + DAY, NOW)
        assert result.sale is not None
        assert result.sale.royalty == 50_000_000
        assert bank.balance_of("stars1artist") == 50_000_000
        assert bank.balance_of(CREATOR) == PRICE - 20_000_000 - 50_000_000
        _check(market)

    def test_developer_fee_share(
        self,
        params: MarketplaceParams,
        bank: Bank,
        contracts: InMemoryContractDirectory,
    ) -> None:
        market = MatchingEngine(replace(params, developer="stars1dev"), bank, contracts)
        _list(market)
        market.place_bid(COLLECTION, 1, BUYER, ustars(PRICE), NOW + DAY, NOW)
        assert bank.balance_of("stars1dev") == 2_000_000
        assert bank.burned == 8_000_000
        assert bank.balance_of(COMMUNITY_POOL_ADDRESS) == 10_000_000
        _check(market)


class TestPlaceBidRules:
    def test_duplicate_active_bid(self, market: MatchingEngine, bank: Bank) -> None:
        market.place_bid(COLLECTION, 2, BUYER, ustars(100), NOW + DAY, NOW)
        with pytest.raises(DuplicateBidError):
            market.place_bid(COLLECTION, 2, BUYER, ustars(200), NOW + DAY, NOW)
        assert bank.balance_of(BUYER) == 2_000_000_000 - 100

    def test_expired_bid_replaced_and_refunded(self, market: MatchingEngine, bank: Bank) -> None:
        first = market.place_bid(COLLECTION, 2, BUYER, ustars(500), NOW + DAY, NOW).bid
        later = NOW + DAY
        result = market.place_bid(COLLECTION, 2, BUYER, ustars(700), later + DAY, later)
        assert result.replaced_bid == first
        assert bank.balance_of(BUYER) == 2_000_000_000 - 700
        assert market.escrow.total_held() == 700
        _check(market)

    def test_insufficient_balance(self, market: MatchingEngine) -> None:
        with pytest.raises(InsufficientBalanceError):
            market.place_bid(COLLECTION, 2, BUYER, ustars(3_000_000_000), NOW + DAY, NOW)
        assert market.bid(COLLECTION, 2, BUYER) is None

    def test_expiry_not_in_future(self, market: MatchingEngine) -> None:
        with pytest.raises(InvalidExpiryError):
            market.place_bid(COLLECTION, 2, BUYER, ustars(100), NOW, NOW)

    def test_zero_funds(self, market: MatchingEngine) -> None:
        with pytest.raises(InvalidPriceError):
            market.place_bid(COLLECTION, 2, BUYER, ustars(0), NOW + DAY, NOW)

    def test_bid_on_unlisted_token_allowed(self, market: MatchingEngine) -> None:
        result = market.place_bid(COLLECTION, 3, BUYER, ustars(100), NOW + DAY, NOW)
        assert result.status == PlaceBidStatus.PLACED
        assert market.bids_by_bidder(BUYER) == [result.bid]


class TestCancel:
    def test_cancel_bid_refunds(self, market: MatchingEngine, bank: Bank) -> None:
        market.place_bid(COLLECTION, 2, BUYER, ustars(100), NOW + DAY, NOW)
        assert market.cancel_bid(COLLECTION, 2, BUYER) == 100
        assert bank.balance_of(BUYER) == 2_000_000_000
        with pytest.raises(OrderNotFoundError):
            market.cancel_bid(COLLECTION, 2, BUYER)
        _check(market)

    def test_cancel_ask_by_seller_only(self, market: MatchingEngine) -> None:
        _list(market)
        with pytest.raises(OrderNotFoundError):
            market.cancel_ask(COLLECTION, 1, BUYER)
        market.cancel_ask(COLLECTION, 1, CREATOR)
        assert market.ask(COLLECTION, 1) is None
        with pytest.raises(OrderNotFoundError):
            market.cancel_ask(COLLECTION, 1, CREATOR)


class TestRemoveExpired:
    def test_sweeps_and_refunds(self, market: MatchingEngine, bank: Bank) -> None:
        _list(market)
        market.place_bid(COLLECTION, 2, BUYER, ustars(100), NOW + DAY, NOW)
        market.place_bid(COLLECTION, 3, BUYER2, ustars(300), NOW + 2 * DAY, NOW)

        result = market.remove_expired(NOW + DAY)
        assert [a.token_id for a in result.asks] == [1]
        assert [b.bidder for b in result.bids] == [BUYER]
        assert result.refunded == 100
        assert bank.balance_of(BUYER) == 2_000_000_000
        assert market.bid(COLLECTION, 3, BUYER2) is not None
        _check(market)

    def test_idempotent(self, market: MatchingEngine) -> None:
        _list(market)
        market.remove_expired(NOW + DAY)
        again = market.remove_expired(NOW + DAY)
        assert again.asks == [] and again.bids == [] and again.refunded == 0

    def test_nothing_expired(self, market: MatchingEngine) -> None:
        _list(market)
        assert market.remove_expired(NOW).asks == []


class TestHooks:
    def test_hooks_called_in_order_and_failures_isolated(
        self, market: MatchingEngine, contracts: InMemoryContractDirectory
    ) -> None:
        first, last = _HookRecorder(), _HookRecorder()
        contracts.add_hook_contract("stars1hook1", first)
        contracts.add_hook_contract("stars1broken", _FailingHook())
        contracts.add_hook_contract("stars1hook2", last)
        for address in ("stars1hook1", "stars1broken", "stars1hook2"):
            market.add_hook(ADMIN, address)

        _list(market)
        result = market.place_bid(COLLECTION, 1, BUYER, ustars(PRICE), NOW + DAY, NOW)

        assert result.status == PlaceBidStatus.MATCHED
        assert [f.address for f in result.hook_failures] == ["stars1broken"]
        assert len(first.events) == 1 and len(last.events) == 1
        assert first.events[0].buyer == BUYER
        assert first.events[0].price == ustars(PRICE)

    def test_claim_module_as_sale_hook(
        self,
        market: MatchingEngine,
        contracts: InMemoryContractDirectory,
        claims: InMemoryClaimModule,
    ) -> None:
        contracts.add_hook_contract("stars1claim", claims)
        market.add_hook(ADMIN, "stars1claim")
        _list(market)
        market.place_bid(COLLECTION, 1, BUYER, ustars(PRICE), NOW + DAY, NOW)
        assert [e.token_id for e in claims.sales_seen] == [1]

    def test_add_hook_admin_only(self, market: MatchingEngine) -> None:
        with pytest.raises(UnauthorizedError):
            market.add_hook(BUYER, "stars1hook")

    def test_no_hooks_on_unmatched_bid(
        self, market: MatchingEngine, contracts: InMemoryContractDirectory
    ) -> None:
        rec = _HookRecorder()
        contracts.add_hook_contract("stars1hook", rec)
        market.add_hook(ADMIN, "stars1hook")
        market.place_bid(COLLECTION, 2, BUYER, ustars(100), NOW + DAY, NOW)
        assert rec.events == []


class TestClaimSignal:
    def test_bid_marks_action(self, market: MatchingEngine, claims: InMemoryClaimModule) -> None:
        market.place_bid(COLLECTION, 2, BUYER, ustars(100), NOW + DAY, NOW)
        assert claims.records[BUYER].action_completed[ClaimAction.BID_NFT] is True

    def test_claim_failure_does_not_undo_bid(
        self, params: MarketplaceParams, bank: Bank, contracts: InMemoryContractDirectory
    ) -> None:
        # marketplace not allowed to claim
        market = MatchingEngine(params, bank, contracts, ClaimClient(InMemoryClaimModule(),
                                                                     params.address))
        result = market.place_bid(COLLECTION, 2, BUYER, ustars(100), NOW + DAY, NOW)
        assert result.claim_error is not None
        assert market.bid(COLLECTION, 2, BUYER) is not None


class TestSnapshot:
    def test_restore_round_trip(
        self,
        market: MatchingEngine,
        params: MarketplaceParams,
        contracts: InMemoryContractDirectory,
    ) -> None:
        _list(market)
        market.place_bid(COLLECTION, 2, BUYER, ustars(100), NOW + DAY, NOW)
        market.add_hook(ADMIN, "stars1hook")

        restored = MatchingEngine(params, Bank(), contracts)
        restored.restore(market.snapshot())

        assert restored.ask(COLLECTION, 1, NOW) == market.ask(COLLECTION, 1, NOW)
        assert restored.bids(COLLECTION, 2) == market.bids(COLLECTION, 2)
        assert restored.hooks.hooks == ["stars1hook"]
        assert restored.bank.balance_of(BUYER) == 2_000_000_000 - 100
        assert len(restored.book.expiry) == 2
        _check(restored)


class TestDeposit:
    def test_admin_funds_account(self, market: MatchingEngine) -> None:
        assert market.deposit(ADMIN, "stars1newcomer", 500) == 500
        assert market.deposit(ADMIN, "stars1newcomer", 250) == 750
        assert market.bank.total_deposited == 4_000_000_750
        _check(market)

    def test_non_admin_rejected(self, market: MatchingEngine) -> None:
        with pytest.raises(UnauthorizedError):
            market.deposit(BUYER, BUYER, 500)
        assert market.bank.balance_of(BUYER) == 2_000_000_000

    def test_amount_must_be_positive(self, market: MatchingEngine) -> None:
        with pytest.raises(InvalidPriceError):
            market.deposit(ADMIN, BUYER, 0)
