"""Collection state tables: registered collections, token owners, approvals.

Saved alongside the marketplace snapshot so a sold token keeps its new owner
across restarts.
"""

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.mp_common.database import Base


class CollectionORM(Base):
    __tablename__ = "collections"

    address: Mapped[str] = mapped_column(String(128), primary_key=True)
    minter: Mapped[str] = mapped_column(String(128), nullable=False)
    royalty_address: Mapped[str | None] = mapped_column(String(128), nullable=True)
    royalty_share_bps: Mapped[int | None] = mapped_column(Integer, nullable=True)


class TokenORM(Base):
    __tablename__ = "collection_tokens"

    collection: Mapped[str] = mapped_column(String(128), primary_key=True)
    token_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    owner: Mapped[str] = mapped_column(String(128), nullable=False)


class TokenApprovalORM(Base):
    __tablename__ = "token_approvals"

    collection: Mapped[str] = mapped_column(String(128), primary_key=True)
    token_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    spender: Mapped[str] = mapped_column(String(128), primary_key=True)
