"""Global enums. Values double as persisted column values."""

from enum import Enum


class OrderKind(str, Enum):
    ASK = "ASK"
    BID = "BID"


class PlaceBidStatus(str, Enum):
    """Outcome of a successful bid placement"""
    PLACED = "PLACED"
    MATCHED = "MATCHED"


class ClaimAction(str, Enum):
    """Milestones tracked by the external claim module"""
    MINT_NFT = "MINT_NFT"
    BID_NFT = "BID_NFT"


class LedgerEntryType(str, Enum):
    DEPOSIT = "DEPOSIT"
    # Escrow (bidder side)
    ESCROW_HOLD = "ESCROW_HOLD"
    ESCROW_RELEASE = "ESCROW_RELEASE"
    ESCROW_REFUND = "ESCROW_REFUND"
    # Settlement payouts
    SALE_PROCEEDS = "SALE_PROCEEDS"
    ROYALTY = "ROYALTY"
    # Protocol fee split
    FEE_BURN = "FEE_BURN"
    FEE_COMMUNITY_POOL = "FEE_COMMUNITY_POOL"
    FEE_DEV = "FEE_DEV"
