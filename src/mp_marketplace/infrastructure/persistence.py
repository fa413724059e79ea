"""MarketplaceStateRepository — saves and loads full engine snapshots.

The engine is the single owner of the state; the tables are its durable copy,
rewritten inside the caller's transaction after every mutating request.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.coins import Coin
from src.mp_common.enums import OrderKind
from src.mp_escrow.domain.models import EscrowEntry
from src.mp_marketplace.infrastructure.db_models import (
    AskORM,
    BalanceORM,
    BankTotalsORM,
    BidORM,
    EscrowBalanceORM,
    ExpiryIndexORM,
    SaleHookORM,
)
from src.mp_matching.engine.engine import MarketplaceSnapshot
from src.mp_orderbook.domain.models import Ask, Bid, OrderRef

_TABLES = (
    AskORM, BidORM, ExpiryIndexORM, EscrowBalanceORM, SaleHookORM, BalanceORM, BankTotalsORM,
)


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------

def _expiry_to_row(instant: int, ref: OrderRef) -> ExpiryIndexORM:
    if ref.kind == OrderKind.ASK:
        collection, token_id = ref.key  # type: ignore[misc]
        bidder = ""
    else:
        collection, token_id, bidder = ref.key  # type: ignore[misc]
    return ExpiryIndexORM(
        instant=instant, kind=ref.kind.value,
        collection=collection, token_id=token_id, bidder=bidder,
    )


def _row_to_expiry(row: ExpiryIndexORM) -> tuple[int, OrderRef]:
    kind = OrderKind(row.kind)
    if kind == OrderKind.ASK:
        return row.instant, OrderRef(kind, (row.collection, row.token_id))
    return row.instant, OrderRef(kind, (row.collection, row.token_id, row.bidder))


class MarketplaceStateRepository:
    async def save(self, snap: MarketplaceSnapshot, db: AsyncSession) -> None:
        for table in _TABLES:
            await db.execute(delete(table))
        db.add_all(
            AskORM(
                collection=a.collection, token_id=a.token_id, seller=a.seller,
                price_amount=a.price.amount, price_denom=a.price.denom, expires=a.expires,
            )
            for a in snap.asks
        )
        db.add_all(
            BidORM(
                collection=b.collection, token_id=b.token_id, bidder=b.bidder,
                amount=b.amount.amount, denom=b.amount.denom, expires=b.expires,
            )
            for b in snap.bids
        )
        db.add_all(_expiry_to_row(instant, ref) for instant, ref in snap.expiry)
        db.add_all(
            EscrowBalanceORM(
                collection=e.ref[0], token_id=e.ref[1], bidder=e.ref[2], amount=e.amount
            )
            for e in snap.escrow
        )
        db.add_all(SaleHookORM(position=i, address=a) for i, a in enumerate(snap.hooks))
        db.add_all(BalanceORM(account=k, amount=v) for k, v in snap.balances.items())
        db.add(BankTotalsORM(id=1, burned=snap.burned, total_deposited=snap.total_deposited))
        await db.flush()

    async def load(self, db: AsyncSession) -> MarketplaceSnapshot | None:
        """Return the stored snapshot, or None when nothing was ever saved."""
        totals = await db.get(BankTotalsORM, 1)
        if totals is None:
            return None

        asks = (await db.execute(select(AskORM))).scalars().all()
        bids = (await db.execute(select(BidORM))).scalars().all()
        expiry = (
            await db.execute(select(ExpiryIndexORM).order_by(ExpiryIndexORM.instant))
        ).scalars().all()
        escrow = (await db.execute(select(EscrowBalanceORM))).scalars().all()
        hooks = (
            await db.execute(select(SaleHookORM).order_by(SaleHookORM.position))
        ).scalars().all()
        balances = (await db.execute(select(BalanceORM))).scalars().all()

        return MarketplaceSnapshot(
            asks=[
                Ask(r.collection, r.token_id, r.seller, Coin(r.price_amount, r.price_denom),
                    r.expires)
                for r in asks
            ],
            bids=[
                Bid(r.collection, r.token_id, r.bidder, Coin(r.amount, r.denom), r.expires)
                for r in bids
            ],
            expiry=[_row_to_expiry(r) for r in expiry],
            escrow=[
                EscrowEntry(ref=(r.collection, r.token_id, r.bidder), bidder=r.bidder,
                            amount=r.amount)
                for r in escrow
            ],
            hooks=[h.address for h in hooks],
            balances={r.account: r.amount for r in balances},
            burned=totals.burned,
            total_deposited=totals.total_deposited,
        )
