"""Sale settlement: turn a matched bid's escrow into payouts."""

from dataclasses import dataclass

from src.mp_clearing.domain.fee import calc_trading_fee, fair_burn
from src.mp_collection.domain.models import RoyaltyInfo
from src.mp_common.coins import bps_floor
from src.mp_common.enums import LedgerEntryType
from src.mp_common.errors import SettlementFailedError
from src.mp_escrow.domain.ledger import BURN_ADDRESS, COMMUNITY_POOL_ADDRESS
from src.mp_escrow.domain.models import Payout


@dataclass(frozen=True)
class SaleBreakdown:
    sale_price: int
    fee: int
    royalty: int
    seller_amount: int
    payouts: tuple[Payout, ...]


def build_sale_payouts(
    sale_price: int,
    seller: str,
    fee_bps: int,
    royalty: RoyaltyInfo | None,
    developer: str | None,
) -> SaleBreakdown:
    """Seller gets sale_price - fee - royalty; the legs always sum to sale_price."""
    fee = calc_trading_fee(sale_price, fee_bps)
    royalty_amount = bps_floor(sale_price, royalty.share_bps) if royalty else 0
    seller_amount = sale_price - fee - royalty_amount
    if seller_amount < 0:
        raise SettlementFailedError(
            f"fee {fee} + royalty {royalty_amount} exceed sale price {sale_price}"
        )

    split = fair_burn(fee, developer is not None)
    payouts = [
        Payout(seller, seller_amount, LedgerEntryType.SALE_PROCEEDS.value),
        Payout(BURN_ADDRESS, split.burn, LedgerEntryType.FEE_BURN.value),
        Payout(COMMUNITY_POOL_ADDRESS, split.community_pool,
               LedgerEntryType.FEE_COMMUNITY_POOL.value),
    ]
    if developer is not None:
        payouts.append(Payout(developer, split.dev, LedgerEntryType.FEE_DEV.value))
    if royalty is not None:
        payouts.append(
            Payout(royalty.payment_address, royalty_amount, LedgerEntryType.ROYALTY.value)
        )

    return SaleBreakdown(
        sale_price=sale_price,
        fee=fee,
        royalty=royalty_amount,
        seller_amount=seller_amount,
        payouts=tuple(payouts),
    )
