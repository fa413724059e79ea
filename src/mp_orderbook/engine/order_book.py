from dataclasses import dataclass, field

from src.mp_common.enums import OrderKind
from src.mp_common.errors import AlreadyListedError, DuplicateBidError
from src.mp_orderbook.domain.models import Ask, AskKey, Bid, BidKey, OrderRef
from src.mp_orderbook.engine.expiry_index import ExpiryIndex


@dataclass
class OrderBook:
    """Asks keyed by (collection, token), bids keyed by (collection, token, bidder).

    Expired orders stay physically stored until `pop_expired`, but every
    `active_*` read treats them as absent.
    """

    asks: dict[AskKey, Ask] = field(default_factory=dict)
    bids: dict[BidKey, Bid] = field(default_factory=dict)
    expiry: ExpiryIndex = field(default_factory=ExpiryIndex)
    _bidders: dict[AskKey, set[str]] = field(default_factory=dict)
    # _bidders[(collection, token_id)] = bidders with a stored bid on the token

    @classmethod
    def from_rows(
        cls, asks: list[Ask], bids: list[Bid], expiry: list[tuple[int, OrderRef]]
    ) -> "OrderBook":
        """Rebuild from persisted tables; the expiry index is loaded as stored."""
        book = cls()
        for ask in asks:
            book.asks[ask.key] = ask
        for bid in bids:
            book.bids[bid.key] = bid
            book._bidders.setdefault((bid.collection, bid.token_id), set()).add(bid.bidder)
        for instant, ref in expiry:
            book.expiry.add(instant, ref)
        return book

    # --- asks ---

    def list_ask(self, ask: Ask, now: int) -> Ask | None:
        """Store ask, replacing an expired one. Returns the replaced ask."""
        if self.active_ask(ask.collection, ask.token_id, now) is not None:
            raise AlreadyListedError(ask.collection, ask.token_id)
        replaced = self.remove_ask(ask.key)
        self.asks[ask.key] = ask
        self.expiry.add(ask.expires, ask.ref)
        return replaced

    def get_ask(self, collection: str, token_id: int) -> Ask | None:
        return self.asks.get((collection, token_id))

    def active_ask(self, collection: str, token_id: int, now: int) -> Ask | None:
        ask = self.asks.get((collection, token_id))
        if ask is None or not ask.is_active(now):
            return None
        return ask

    def remove_ask(self, key: AskKey) -> Ask | None:
        ask = self.asks.pop(key, None)
        if ask is not None:
            self.expiry.remove(ask.expires, ask.ref)
        return ask

    def asks_for(self, collection: str) -> list[Ask]:
        return sorted(
            (a for a in self.asks.values() if a.collection == collection),
            key=lambda a: a.token_id,
        )

    # --- bids ---

    def add_bid(self, bid: Bid, now: int) -> Bid | None:
        """Store bid, replacing the bidder's expired one. Returns the replaced bid."""
        existing = self.bids.get(bid.key)
        if existing is not None and existing.is_active(now):
            raise DuplicateBidError(bid.collection, bid.token_id, bid.bidder)
        replaced = self.remove_bid(bid.key)
        self.bids[bid.key] = bid
        self._bidders.setdefault((bid.collection, bid.token_id), set()).add(bid.bidder)
        self.expiry.add(bid.expires, bid.ref)
        return replaced

    def get_bid(self, collection: str, token_id: int, bidder: str) -> Bid | None:
        return self.bids.get((collection, token_id, bidder))

    def active_bid(self, collection: str, token_id: int, bidder: str, now: int) -> Bid | None:
        bid = self.bids.get((collection, token_id, bidder))
        if bid is None or not bid.is_active(now):
            return None
        return bid

    def remove_bid(self, key: BidKey) -> Bid | None:
        bid = self.bids.pop(key, None)
        if bid is None:
            return None
        self.expiry.remove(bid.expires, bid.ref)
        token = (bid.collection, bid.token_id)
        bidders = self._bidders.get(token)
        if bidders is not None:
            bidders.discard(bid.bidder)
            if not bidders:
                del self._bidders[token]
        return bid

    def bids_for(self, collection: str, token_id: int) -> list[Bid]:
        bidders = self._bidders.get((collection, token_id), set())
        return [self.bids[(collection, token_id, b)] for b in sorted(bidders)]

    def bids_by_bidder(self, bidder: str) -> list[Bid]:
        return sorted(
            (b for b in self.bids.values() if b.bidder == bidder),
            key=lambda b: (b.collection, b.token_id),
        )

    # --- expiry ---

    def pop_expired(self, now: int) -> tuple[list[Ask], list[Bid]]:
        """Remove every order with expires <= now, via the expiry index."""
        asks: list[Ask] = []
        bids: list[Bid] = []
        for instant, ref in self.expiry.expired(now):
            if ref.kind == OrderKind.ASK:
                ask = self.asks.get(ref.key)  # type: ignore[arg-type]
                if ask is not None and ask.expires == instant:
                    asks.append(ask)
                    self.remove_ask(ask.key)
            else:
                bid = self.bids.get(ref.key)  # type: ignore[arg-type]
                if bid is not None and bid.expires == instant:
                    bids.append(bid)
                    self.remove_bid(bid.key)
            self.expiry.remove(instant, ref)
        return asks, bids
