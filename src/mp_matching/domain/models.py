from dataclasses import dataclass, field

from config.settings import Settings
from src.mp_common.coins import BPS_DENOMINATOR
from src.mp_common.datetime_utils import seconds_to_nanos
from src.mp_common.enums import PlaceBidStatus
from src.mp_common.errors import InvalidConfigError
from src.mp_hooks.domain.models import HookFailure, SaleEvent
from src.mp_orderbook.domain.models import Ask, Bid


@dataclass(frozen=True)
class MarketplaceParams:
    """Instantiation parameters. Fixed for the lifetime of the engine."""

    address: str
    admin: str
    denom: str = "ustars"
    trading_fee_bps: int = 200
    min_ask_expiry: int = 86_400  # seconds
    max_ask_expiry: int = 15_552_000
    min_bid_expiry: int = 86_400
    max_bid_expiry: int = 15_552_000
    developer: str | None = None

    @classmethod
    def from_settings(cls, s: Settings) -> "MarketplaceParams":
        return cls(
            address=s.MARKETPLACE_ADDRESS,
            admin=s.MARKETPLACE_ADMIN,
            denom=s.NATIVE_DENOM,
            trading_fee_bps=s.TRADING_FEE_BPS,
            min_ask_expiry=s.MIN_ASK_EXPIRY,
            max_ask_expiry=s.MAX_ASK_EXPIRY,
            min_bid_expiry=s.MIN_BID_EXPIRY,
            max_bid_expiry=s.MAX_BID_EXPIRY,
            developer=s.DEVELOPER_ADDRESS,
        )

    def validate(self) -> None:
        if not self.address or not self.admin or not self.denom:
            raise InvalidConfigError("address, admin and denom are required")
        if not (0 <= self.trading_fee_bps <= BPS_DENOMINATOR):
            raise InvalidConfigError(f"trading_fee_bps out of range: {self.trading_fee_bps}")
        if self.min_ask_expiry < 0 or self.min_ask_expiry > self.max_ask_expiry:
            raise InvalidConfigError(
                f"ask expiry bounds invalid: {self.min_ask_expiry} > {self.max_ask_expiry}"
            )
        if self.min_bid_expiry < 0 or self.min_bid_expiry > self.max_bid_expiry:
            raise InvalidConfigError(
                f"bid expiry bounds invalid: {self.min_bid_expiry} > {self.max_bid_expiry}"
            )

    def ask_window(self, now: int) -> tuple[int, int]:
        return now + seconds_to_nanos(self.min_ask_expiry), now + seconds_to_nanos(self.max_ask_expiry)

    def bid_window(self, now: int) -> tuple[int, int]:
        return now + seconds_to_nanos(self.min_bid_expiry), now + seconds_to_nanos(self.max_bid_expiry)


@dataclass(frozen=True)
class SaleSettlement:
    event: SaleEvent
    fee: int
    royalty: int
    seller_amount: int


@dataclass
class PlaceBidResult:
    status: PlaceBidStatus
    bid: Bid
    sale: SaleSettlement | None = None
    replaced_bid: Bid | None = None  # expired bid by the same bidder, refunded
    hook_failures: list[HookFailure] = field(default_factory=list)
    claim_error: str | None = None


@dataclass
class SweepResult:
    asks: list[Ask] = field(default_factory=list)
    bids: list[Bid] = field(default_factory=list)
    refunded: int = 0
