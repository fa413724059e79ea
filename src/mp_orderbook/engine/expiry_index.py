"""Secondary index of orders by expiration instant.

Instants are kept in a sorted list next to a bucket dict, so collecting every
order with `expires <= now` costs O(log n + k) instead of a scan of the book.
"""

from bisect import bisect_right, insort
from dataclasses import dataclass, field

from src.mp_orderbook.domain.models import OrderRef


@dataclass
class ExpiryIndex:
    _instants: list[int] = field(default_factory=list)  # sorted, unique
    _buckets: dict[int, set[OrderRef]] = field(default_factory=dict)

    def add(self, expires: int, ref: OrderRef) -> None:
        bucket = self._buckets.get(expires)
        if bucket is None:
            bucket = self._buckets[expires] = set()
            insort(self._instants, expires)
        bucket.add(ref)

    def remove(self, expires: int, ref: OrderRef) -> None:
        bucket = self._buckets.get(expires)
        if bucket is None:
            return
        bucket.discard(ref)
        if not bucket:
            del self._buckets[expires]
            i = bisect_right(self._instants, expires) - 1
            del self._instants[i]

    def expired(self, now: int) -> list[tuple[int, OrderRef]]:
        """All (instant, ref) with instant <= now, oldest first. Read-only."""
        cut = bisect_right(self._instants, now)
        return [
            (instant, ref)
            for instant in self._instants[:cut]
            for ref in sorted(self._buckets[instant], key=_ref_sort_key)
        ]

    def entries(self) -> list[tuple[int, OrderRef]]:
        return self.expired(self._instants[-1]) if self._instants else []

    def __len__(self) -> int:
        return sum(len(b) for b in self._buckets.values())


def _ref_sort_key(ref: OrderRef) -> tuple[str, str]:
    # deterministic order inside a bucket (sets are unordered)
    return (ref.kind.value, repr(ref.key))
