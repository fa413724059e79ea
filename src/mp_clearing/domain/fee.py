"""Protocol fee calculation and the fair-burn split of the collected fee."""

from dataclasses import dataclass

from src.mp_common.coins import bps_ceil

FEE_BURN_PERCENT = 50
DEV_INCENTIVE_PERCENT = 10


@dataclass(frozen=True)
class FeeSplit:
    burn: int
    dev: int
    community_pool: int

    @property
    def total(self) -> int:
        return self.burn + self.dev + self.community_pool


def calc_trading_fee(sale_price: int, fee_bps: int) -> int:
    """Ceiling division fee: the fee is deducted from the sale, never charged on top."""
    return bps_ceil(sale_price, fee_bps)


def fair_burn(fee: int, has_developer: bool) -> FeeSplit:
    """Burn half the fee, send the rest to the community pool.

    With a developer address, 10% of the fee goes to the developer out of the
    burn share (burn drops to 40%).
    """
    if has_developer:
        dev = fee * DEV_INCENTIVE_PERCENT // 100
        burn = fee * (FEE_BURN_PERCENT - DEV_INCENTIVE_PERCENT) // 100
    else:
        dev = 0
        burn = fee * FEE_BURN_PERCENT // 100
    return FeeSplit(burn=burn, dev=dev, community_pool=fee - (burn + dev))
