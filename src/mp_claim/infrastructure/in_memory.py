"""In-memory claim module.

Tracks per-address action completion and which contracts may signal which
action. The airdrop reward curve is not modelled: completing an action only
flips its flag and reports the per-action share of the initial claimable
amount.
"""

import logging
from dataclasses import dataclass, field

from src.mp_common.enums import ClaimAction
from src.mp_common.errors import UnauthorizedError
from src.mp_hooks.domain.models import SaleEvent

logger = logging.getLogger(__name__)


@dataclass
class ClaimRecord:
    address: str
    initial_claimable: int
    action_completed: dict[ClaimAction, bool] = field(
        default_factory=lambda: {a: False for a in ClaimAction}
    )


@dataclass
class InMemoryClaimModule:
    records: dict[str, ClaimRecord] = field(default_factory=dict)
    allowed_claimers: set[tuple[str, ClaimAction]] = field(default_factory=set)
    sales_seen: list[SaleEvent] = field(default_factory=list)

    def set_claim_record(self, address: str, initial_claimable: int) -> ClaimRecord:
        record = ClaimRecord(address=address, initial_claimable=initial_claimable)
        self.records[address] = record
        return record

    def allow(self, contract: str, action: ClaimAction) -> None:
        self.allowed_claimers.add((contract, action))

    def claim_for(self, caller: str, address: str, action: ClaimAction) -> int:
        """Mark `action` done for `address`. Returns the amount unlocked (0 if none)."""
        if (caller, action) not in self.allowed_claimers:
            raise UnauthorizedError(f"{caller} may not claim {action.value}")
        record = self.records.get(address)
        if record is None or record.action_completed[action]:
            return 0
        record.action_completed[action] = True
        unlocked = record.initial_claimable // len(ClaimAction)
        logger.info("Claim %s completed for %s, unlocked %d", action.value, address, unlocked)
        return unlocked

    def on_sale_finalized(self, event: SaleEvent) -> None:
        self.sales_seen.append(event)


@dataclass
class ClaimClient:
    """Binds the module to the calling contract; what the marketplace holds."""

    module: InMemoryClaimModule
    caller: str

    def notify_action_completed(self, account: str, action: ClaimAction) -> None:
        self.module.claim_for(self.caller, account, action)
