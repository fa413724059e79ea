"""Single-shot bid/ask match rule."""
from src.mp_orderbook.domain.models import Ask, Bid


def can_match(bid: Bid, ask: Ask | None, now: int) -> bool:
    """Exact-or-above: the bid settles iff the ask is live and bid >= price.

    Expiry is checked here as well as at lookup, so a stale order never
    matches whatever the caller passed in.
    """
    if ask is None or not ask.is_active(now) or not bid.is_active(now):
        return False
    if bid.amount.denom != ask.price.denom:
        return False
    return bid.amount.amount >= ask.price.amount
