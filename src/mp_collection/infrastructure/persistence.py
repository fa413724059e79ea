"""CollectionStateRepository: saves and loads the in-memory collections."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_collection.domain.models import RoyaltyInfo
from src.mp_collection.infrastructure.db_models import CollectionORM, TokenApprovalORM, TokenORM
from src.mp_collection.infrastructure.in_memory import (
    InMemoryCollection,
    InMemoryContractDirectory,
)

_TABLES = (CollectionORM, TokenORM, TokenApprovalORM)


def _collection_to_row(coll: InMemoryCollection) -> CollectionORM:
    royalty = coll.royalty
    return CollectionORM(
        address=coll.address,
        minter=coll.minter,
        royalty_address=royalty.payment_address if royalty else None,
        royalty_share_bps=royalty.share_bps if royalty else None,
    )


def _row_to_collection(row: CollectionORM) -> InMemoryCollection:
    royalty = None
    if row.royalty_address is not None and row.royalty_share_bps is not None:
        royalty = RoyaltyInfo(row.royalty_address, row.royalty_share_bps)
    return InMemoryCollection(address=row.address, minter=row.minter, royalty=royalty)


class CollectionStateRepository:
    async def save(self, directory: InMemoryContractDirectory, db: AsyncSession) -> None:
        for table in _TABLES:
            await db.execute(delete(table))
        for coll in directory.collections.values():
            db.add(_collection_to_row(coll))
            db.add_all(
                TokenORM(collection=coll.address, token_id=t, owner=o)
                for t, o in coll.tokens().items()
            )
            db.add_all(
                TokenApprovalORM(collection=coll.address, token_id=t, spender=s)
                for t, spenders in coll.approvals().items()
                for s in sorted(spenders)
            )
        await db.flush()

    async def load(self, directory: InMemoryContractDirectory, db: AsyncSession) -> int:
        """Replace the directory's collections with the stored ones. Returns how many."""
        rows = (await db.execute(select(CollectionORM))).scalars().all()
        tokens = (await db.execute(select(TokenORM))).scalars().all()
        approvals = (await db.execute(select(TokenApprovalORM))).scalars().all()

        owners: dict[str, dict[int, str]] = {}
        for t in tokens:
            owners.setdefault(t.collection, {})[t.token_id] = t.owner
        approved: dict[str, dict[int, set[str]]] = {}
        for a in approvals:
            approved.setdefault(a.collection, {}).setdefault(a.token_id, set()).add(a.spender)

        colls = []
        for row in rows:
            coll = _row_to_collection(row)
            coll.restore(owners.get(row.address, {}), approved.get(row.address, {}))
            colls.append(coll)
        directory.replace_collections(colls)
        return len(colls)
