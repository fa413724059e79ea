"""Escrow/order-table consistency and fund conservation checks."""

import logging

from src.mp_escrow.domain.ledger import Bank, EscrowLedger
from src.mp_escrow.domain.models import format_ref
from src.mp_orderbook.engine.order_book import OrderBook

logger = logging.getLogger(__name__)


def verify_escrow_invariants(book: OrderBook, escrow: EscrowLedger) -> None:
    """Verify escrow matches the bid table. Raises AssertionError if violated.

    INV-1: every stored bid has an escrow entry of exactly its amount
    INV-2: every escrow entry belongs to a stored bid
    INV-3: total escrow == total of stored bid amounts
    """
    held = {e.ref: e for e in escrow.entries()}
    for key, bid in book.bids.items():
        entry = held.get(key)
        assert entry is not None, f"INV-1 violated: no escrow for bid {format_ref(key)}"
        assert entry.amount == bid.amount.amount, (
            f"INV-1 violated: escrow {entry.amount} != bid {bid.amount.amount} "
            f"for {format_ref(key)}"
        )
    orphans = [format_ref(ref) for ref in held if ref not in book.bids]
    assert not orphans, f"INV-2 violated: escrow without bid: {orphans}"

    total_bids = sum(b.amount.amount for b in book.bids.values())
    total_held = escrow.total_held()
    assert total_bids == total_held, (
        f"INV-3 violated: bids={total_bids} != escrow={total_held}"
    )
    logger.debug("Escrow invariants OK: bids=%d, held=%d", len(book.bids), total_held)


def verify_conservation(bank: Bank, escrow: EscrowLedger) -> list[str]:
    """Check INV-G: balances + escrow + burned == deposited. Returns violations."""
    violations: list[str] = []
    balances = sum(bank.balances().values())
    held = escrow.total_held()
    total = balances + held + bank.burned
    if total != bank.total_deposited:
        msg = (
            f"INV-G violated: balances({balances}) + escrow({held}) + "
            f"burned({bank.burned}) = {total} != deposited={bank.total_deposited}"
        )
        violations.append(msg)
        logger.error(msg)
    return violations
