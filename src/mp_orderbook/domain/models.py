"""Order domain models — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass

from src.mp_common.coins import Coin
from src.mp_common.enums import OrderKind

AskKey = tuple[str, int]  # (collection, token_id)
BidKey = tuple[str, int, str]  # (collection, token_id, bidder)


@dataclass(frozen=True)
class OrderRef:
    """Reference stored in the expiry index."""

    kind: OrderKind
    key: AskKey | BidKey


@dataclass(frozen=True)
class Ask:
    collection: str
    token_id: int
    seller: str
    price: Coin
    expires: int  # ns

    @property
    def key(self) -> AskKey:
        return (self.collection, self.token_id)

    @property
    def ref(self) -> OrderRef:
        return OrderRef(OrderKind.ASK, self.key)

    def is_active(self, now: int) -> bool:
        return self.expires > now


@dataclass(frozen=True)
class Bid:
    collection: str
    token_id: int
    bidder: str
    amount: Coin  # escrowed funds = bid price
    expires: int  # ns

    @property
    def key(self) -> BidKey:
        return (self.collection, self.token_id, self.bidder)

    @property
    def ref(self) -> OrderRef:
        return OrderRef(OrderKind.BID, self.key)

    def is_active(self, now: int) -> bool:
        return self.expires > now
