"""Integer coin arithmetic.

All prices, amounts and balances are int in the smallest denomination unit
(ustars). No float, no Decimal.
"""

from dataclasses import dataclass

from src.mp_common.errors import InvalidPriceError

BPS_DENOMINATOR = 10_000


@dataclass(frozen=True)
class Coin:
    amount: int
    denom: str

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


def validate_payment(coin: Coin, native_denom: str) -> None:
    """Reject zero amounts and any denomination other than the native one."""
    if coin.denom != native_denom:
        raise InvalidPriceError(f"expected denom {native_denom}, got {coin.denom}")
    if coin.amount <= 0:
        raise InvalidPriceError(f"amount must be > 0, got {coin.amount}")


def bps_ceil(value: int, bps: int) -> int:
    """Ceiling division (platform never loses): ceil(value * bps / 10000)."""
    if value == 0 or bps == 0:
        return 0
    return (value * bps + BPS_DENOMINATOR - 1) // BPS_DENOMINATOR


def bps_floor(value: int, bps: int) -> int:
    return value * bps // BPS_DENOMINATOR
