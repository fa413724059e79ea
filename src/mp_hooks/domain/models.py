from dataclasses import dataclass
from typing import Protocol

from src.mp_common.coins import Coin


@dataclass(frozen=True)
class SaleEvent:
    """Passed to every registered hook at settlement. Never persisted."""

    collection: str
    token_id: int
    seller: str
    buyer: str
    price: Coin


@dataclass(frozen=True)
class HookFailure:
    address: str
    error: str


class SaleFinalizedHook(Protocol):
    def on_sale_finalized(self, event: SaleEvent) -> None: ...
