"""Escrow domain models — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass

# (collection, token_id, bidder): one escrow tag per bid
BidRef = tuple[str, int, str]


def format_ref(ref: BidRef) -> str:
    collection, token_id, bidder = ref
    return f"{collection}/{token_id}/{bidder}"


@dataclass(frozen=True)
class EscrowEntry:
    ref: BidRef
    bidder: str
    amount: int


@dataclass(frozen=True)
class Payout:
    """One leg of an escrow disbursement."""

    recipient: str
    amount: int
    entry_type: str  # LedgerEntryType value


@dataclass
class LedgerEntry:
    id: int
    account: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # positive=income negative=expense
    balance_after: int               # available balance snapshot after op
    reference: str | None = None
