"""Native balances and bid escrow.

Bank holds every account's available balance and the append-only ledger of
movements. EscrowLedger parks bid funds under a one-shot tag: each tag is
released exactly once, after which any further release fails with
UnknownEscrowError.
"""

import logging
from collections.abc import Iterable

from src.mp_common.enums import LedgerEntryType
from src.mp_common.errors import InsufficientBalanceError, InternalError, UnknownEscrowError
from src.mp_escrow.domain.models import BidRef, EscrowEntry, LedgerEntry, Payout, format_ref

logger = logging.getLogger(__name__)

BURN_ADDRESS = "burn"
COMMUNITY_POOL_ADDRESS = "community_pool"


class Bank:
    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._entries: list[LedgerEntry] = []
        self.burned = 0
        self.total_deposited = 0

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def balances(self) -> dict[str, int]:
        return dict(self._balances)

    def ledger(self, account: str | None = None) -> list[LedgerEntry]:
        if account is None:
            return list(self._entries)
        return [e for e in self._entries if e.account == account]

    def deposit(self, account: str, amount: int) -> LedgerEntry:
        """Genesis/setup funding. The only way new funds enter the system."""
        if amount <= 0:
            raise ValueError(f"deposit amount must be > 0, got {amount}")
        self.total_deposited += amount
        return self.credit(account, amount, LedgerEntryType.DEPOSIT, None)

    def debit(
        self, account: str, amount: int, entry_type: LedgerEntryType, reference: str | None
    ) -> LedgerEntry:
        available = self.balance_of(account)
        if available < amount:
            raise InsufficientBalanceError(required=amount, available=available)
        self._balances[account] = available - amount
        return self._write(account, entry_type, -amount, reference)

    def credit(
        self, account: str, amount: int, entry_type: LedgerEntryType, reference: str | None
    ) -> LedgerEntry:
        if account == BURN_ADDRESS:
            self.burned += amount
        else:
            self._balances[account] = self.balance_of(account) + amount
        return self._write(account, entry_type, amount, reference)

    def restore(self, balances: dict[str, int], burned: int, total_deposited: int) -> None:
        self._balances = dict(balances)
        self.burned = burned
        self.total_deposited = total_deposited

    def _write(
        self, account: str, entry_type: LedgerEntryType, amount: int, reference: str | None
    ) -> LedgerEntry:
        balance_after = self.burned if account == BURN_ADDRESS else self.balance_of(account)
        entry = LedgerEntry(
            id=len(self._entries) + 1,
            account=account,
            entry_type=entry_type.value,
            amount=amount,
            balance_after=balance_after,
            reference=reference,
        )
        self._entries.append(entry)
        return entry


class EscrowLedger:
    def __init__(self, bank: Bank) -> None:
        self._bank = bank
        self._held: dict[BidRef, EscrowEntry] = {}

    def hold(self, ref: BidRef, bidder: str, amount: int) -> EscrowEntry:
        """Debit the bidder's available balance into an escrow tagged to the bid."""
        if ref in self._held:
            raise InternalError(f"escrow already held for {format_ref(ref)}")
        self._bank.debit(bidder, amount, LedgerEntryType.ESCROW_HOLD, format_ref(ref))
        entry = EscrowEntry(ref=ref, bidder=bidder, amount=amount)
        self._held[ref] = entry
        logger.debug("Escrow hold %s amount=%d", format_ref(ref), amount)
        return entry

    def release(self, ref: BidRef, to: str) -> int:
        entry = self._get(ref)
        self.disburse(ref, [Payout(to, entry.amount, LedgerEntryType.ESCROW_RELEASE.value)])
        return entry.amount

    def refund(self, ref: BidRef) -> int:
        entry = self._get(ref)
        self.disburse(
            ref, [Payout(entry.bidder, entry.amount, LedgerEntryType.ESCROW_REFUND.value)]
        )
        return entry.amount

    def disburse(self, ref: BidRef, payouts: Iterable[Payout]) -> EscrowEntry:
        """Split one escrow across recipients. Payouts must sum to the held amount."""
        entry = self._get(ref)
        payouts = list(payouts)
        legs = [p for p in payouts if p.amount > 0]
        total = sum(p.amount for p in legs)
        if total != entry.amount or any(p.amount < 0 for p in payouts):
            raise InternalError(
                f"payouts {total} do not match escrow {entry.amount} for {format_ref(ref)}"
            )
        del self._held[ref]
        for p in legs:
            self._bank.credit(p.recipient, p.amount, LedgerEntryType(p.entry_type), format_ref(ref))
        logger.debug("Escrow disbursed %s legs=%d amount=%d", format_ref(ref), len(legs), total)
        return entry

    def held(self, ref: BidRef) -> EscrowEntry | None:
        return self._held.get(ref)

    def entries(self) -> list[EscrowEntry]:
        return list(self._held.values())

    def total_held(self) -> int:
        return sum(e.amount for e in self._held.values())

    def restore(self, entries: Iterable[EscrowEntry]) -> None:
        self._held = {e.ref: e for e in entries}

    def _get(self, ref: BidRef) -> EscrowEntry:
        entry = self._held.get(ref)
        if entry is None:
            raise UnknownEscrowError(format_ref(ref))
        return entry
