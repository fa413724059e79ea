"""MatchingEngine — the marketplace state machine.

Every public method is one serialized, atomic operation: all validation and
every collaborator call that can fail happens before the first state change.
Time only enters through the `now` argument.
"""
import logging
from dataclasses import dataclass, field

from src.mp_claim.domain.bridge import ClaimBridge, ClaimCollaboratorProtocol
from src.mp_clearing.domain.invariants import verify_escrow_invariants
from src.mp_clearing.domain.settlement import SaleBreakdown, build_sale_payouts
from src.mp_collection.domain.models import CollectionError
from src.mp_collection.domain.repository import CollectionProtocol, ContractDirectoryProtocol
from src.mp_common.coins import Coin, validate_payment
from src.mp_common.enums import ClaimAction, PlaceBidStatus
from src.mp_common.errors import (
    CollectionNotFoundError,
    DuplicateBidError,
    InsufficientBalanceError,
    InvalidExpiryError,
    InvalidPriceError,
    OrderNotFoundError,
    SettlementFailedError,
    UnauthorizedError,
)
from src.mp_escrow.domain.ledger import Bank, EscrowLedger
from src.mp_escrow.domain.models import EscrowEntry
from src.mp_hooks.domain.models import SaleEvent
from src.mp_hooks.domain.registry import HookRegistry
from src.mp_matching.domain.models import (
    MarketplaceParams,
    PlaceBidResult,
    SaleSettlement,
    SweepResult,
)
from src.mp_matching.engine.matching_algo import can_match
from src.mp_orderbook.domain.models import Ask, Bid, OrderRef
from src.mp_orderbook.engine.order_book import OrderBook

logger = logging.getLogger(__name__)


@dataclass
class MarketplaceSnapshot:
    """Full engine state, as written to / read from the state tables."""

    asks: list[Ask] = field(default_factory=list)
    bids: list[Bid] = field(default_factory=list)
    expiry: list[tuple[int, OrderRef]] = field(default_factory=list)
    escrow: list[EscrowEntry] = field(default_factory=list)
    hooks: list[str] = field(default_factory=list)
    balances: dict[str, int] = field(default_factory=dict)
    burned: int = 0
    total_deposited: int = 0


class MatchingEngine:
    def __init__(
        self,
        params: MarketplaceParams,
        bank: Bank,
        contracts: ContractDirectoryProtocol,
        claim: ClaimCollaboratorProtocol | None = None,
    ) -> None:
        params.validate()
        self.params = params
        self.bank = bank
        self.escrow = EscrowLedger(bank)
        self.book = OrderBook()
        self.hooks = HookRegistry(params.admin, contracts.hook)
        self.claim = ClaimBridge(claim, params.address)
        self._contracts = contracts

    # --- execute ---

    def place_ask(
        self, collection: str, token_id: int, seller: str, price: Coin, expires: int, now: int
    ) -> Ask:
        validate_payment(price, self.params.denom)
        self._check_window(expires, self.params.ask_window(now), "ask")
        coll = self._collection(collection)
        try:
            owner = coll.owner_of(token_id)
        except CollectionError as exc:
            raise UnauthorizedError(str(exc)) from exc
        if owner != seller:
            raise UnauthorizedError(f"{seller} does not own token {token_id} of {collection}")
        if not coll.is_approved(token_id, self.params.address):
            raise UnauthorizedError(
                f"marketplace is not approved for token {token_id} of {collection}"
            )

        ask = Ask(collection, token_id, seller, price, expires)
        replaced = self.book.list_ask(ask, now)
        if replaced is not None:
            logger.debug("Expired ask replaced: %s/%d", collection, token_id)
        logger.debug("Ask listed: %s/%d by %s at %s", collection, token_id, seller, price)
        return ask

    def place_bid(
        self, collection: str, token_id: int, bidder: str, funds: Coin, expires: int, now: int
    ) -> PlaceBidResult:
        """Escrow funds and match against the standing ask, or store the bid."""
        validate_payment(funds, self.params.denom)
        if expires <= now:
            raise InvalidExpiryError(f"bid expiry {expires} is not after {now}")
        self._check_window(expires, self.params.bid_window(now), "bid")
        coll = self._collection(collection)

        stale = self.book.get_bid(collection, token_id, bidder)
        if stale is not None and stale.is_active(now):
            raise DuplicateBidError(collection, token_id, bidder)
        available = self.bank.balance_of(bidder) + (stale.amount.amount if stale else 0)
        if available < funds.amount:
            raise InsufficientBalanceError(required=funds.amount, available=available)

        bid = Bid(collection, token_id, bidder, funds, expires)
        ask = self.book.active_ask(collection, token_id, now)
        matched = ask if can_match(bid, ask, now) else None
        sale_plan: tuple[Ask, SaleBreakdown] | None = None
        if matched is not None:
            breakdown = build_sale_payouts(
                funds.amount,
                matched.seller,
                self.params.trading_fee_bps,
                coll.royalty_info(),
                self.params.developer,
            )
            self._transfer_nft(coll, matched, bidder)
            sale_plan = (matched, breakdown)

        # Nothing below can fail: the transfer already happened or was not needed.
        if stale is not None:
            self.book.remove_bid(stale.key)
            self.escrow.refund(stale.key)
        self.escrow.hold(bid.key, bidder, funds.amount)

        result = PlaceBidResult(status=PlaceBidStatus.PLACED, bid=bid, replaced_bid=stale)
        if sale_plan is None:
            self.book.add_bid(bid, now)
            logger.debug("Bid placed: %s/%d by %s at %s", collection, token_id, bidder, funds)
        else:
            sold, breakdown = sale_plan
            result.status = PlaceBidStatus.MATCHED
            result.sale = self._finalize_sale(bid, sold, breakdown)
            result.hook_failures = self.hooks.dispatch(result.sale.event)

        result.claim_error = self.claim.notify_bid(bidder, ClaimAction.BID_NFT)
        return result

    def cancel_ask(self, collection: str, token_id: int, account: str) -> Ask:
        ask = self.book.get_ask(collection, token_id)
        if ask is None or ask.seller != account:
            raise OrderNotFoundError(f"ask {collection}/{token_id} for {account}")
        self.book.remove_ask(ask.key)
        logger.debug("Ask cancelled: %s/%d", collection, token_id)
        return ask

    def cancel_bid(self, collection: str, token_id: int, account: str) -> int:
        """Remove the caller's bid and refund its escrow. Returns the refund."""
        bid = self.book.get_bid(collection, token_id, account)
        if bid is None:
            raise OrderNotFoundError(f"bid {collection}/{token_id} for {account}")
        self.book.remove_bid(bid.key)
        refunded = self.escrow.refund(bid.key)
        logger.debug("Bid cancelled: %s/%d by %s, refunded %d", collection, token_id, account, refunded)
        return refunded

    def remove_expired(self, now: int) -> SweepResult:
        """Drop every order with expires <= now and refund expired bids. Idempotent."""
        asks, bids = self.book.pop_expired(now)
        result = SweepResult(asks=asks, bids=bids)
        for bid in bids:
            result.refunded += self.escrow.refund(bid.key)
        if asks or bids:
            logger.info(
                "Expired orders removed: asks=%d bids=%d refunded=%d",
                len(asks), len(bids), result.refunded,
            )
        return result

    def add_hook(self, caller: str, address: str) -> bool:
        return self.hooks.add_hook(caller, address)

    def deposit(self, caller: str, account: str, amount: int) -> int:
        """Admin-only genesis funding. Returns the account's new balance."""
        if caller != self.params.admin:
            raise UnauthorizedError(f"{caller} is not the marketplace admin")
        if amount <= 0:
            raise InvalidPriceError(f"deposit must be > 0, got {amount}")
        self.bank.deposit(account, amount)
        logger.info("Deposit: %s +%d", account, amount)
        return self.bank.balance_of(account)

    # --- query ---

    def ask(self, collection: str, token_id: int, now: int | None = None) -> Ask | None:
        if now is None:
            return self.book.get_ask(collection, token_id)
        return self.book.active_ask(collection, token_id, now)

    def asks(self, collection: str, now: int | None = None) -> list[Ask]:
        return [a for a in self.book.asks_for(collection) if now is None or a.is_active(now)]

    def bid(self, collection: str, token_id: int, bidder: str, now: int | None = None) -> Bid | None:
        if now is None:
            return self.book.get_bid(collection, token_id, bidder)
        return self.book.active_bid(collection, token_id, bidder, now)

    def bids(self, collection: str, token_id: int, now: int | None = None) -> list[Bid]:
        return [
            b for b in self.book.bids_for(collection, token_id) if now is None or b.is_active(now)
        ]

    def bids_by_bidder(self, bidder: str, now: int | None = None) -> list[Bid]:
        return [b for b in self.book.bids_by_bidder(bidder) if now is None or b.is_active(now)]

    # --- state ---

    def snapshot(self) -> MarketplaceSnapshot:
        return MarketplaceSnapshot(
            asks=list(self.book.asks.values()),
            bids=list(self.book.bids.values()),
            expiry=self.book.expiry.entries(),
            escrow=self.escrow.entries(),
            hooks=self.hooks.hooks,
            balances=self.bank.balances(),
            burned=self.bank.burned,
            total_deposited=self.bank.total_deposited,
        )

    def restore(self, snap: MarketplaceSnapshot) -> None:
        self.book = OrderBook.from_rows(snap.asks, snap.bids, snap.expiry)
        self.escrow.restore(snap.escrow)
        self.hooks.restore(snap.hooks)
        self.bank.restore(snap.balances, snap.burned, snap.total_deposited)
        verify_escrow_invariants(self.book, self.escrow)

    # --- internals ---

    def _collection(self, address: str) -> CollectionProtocol:
        coll = self._contracts.collection(address)
        if coll is None:
            raise CollectionNotFoundError(address)
        return coll

    def _check_window(self, expires: int, window: tuple[int, int], side: str) -> None:
        lo, hi = window
        if not (lo <= expires <= hi):
            raise InvalidExpiryError(f"{side} expiry {expires} outside [{lo}, {hi}]")

    def _transfer_nft(self, coll: CollectionProtocol, ask: Ask, buyer: str) -> None:
        try:
            coll.transfer_from(self.params.address, ask.token_id, ask.seller, buyer)
        except CollectionError as exc:
            logger.info(
                "Settlement aborted for %s/%d: %s", ask.collection, ask.token_id, exc
            )
            raise SettlementFailedError(str(exc)) from exc

    def _finalize_sale(self, bid: Bid, ask: Ask, breakdown: SaleBreakdown) -> SaleSettlement:
        self.book.remove_ask(ask.key)
        self.escrow.disburse(bid.key, breakdown.payouts)
        verify_escrow_invariants(self.book, self.escrow)

        event = SaleEvent(
            collection=ask.collection,
            token_id=ask.token_id,
            seller=ask.seller,
            buyer=bid.bidder,
            price=bid.amount,
        )
        logger.info(
            "Sale settled: %s/%d %s -> %s price=%d fee=%d royalty=%d",
            ask.collection, ask.token_id, ask.seller, bid.bidder,
            breakdown.sale_price, breakdown.fee, breakdown.royalty,
        )
        return SaleSettlement(
            event=event,
            fee=breakdown.fee,
            royalty=breakdown.royalty,
            seller_amount=breakdown.seller_amount,
        )
