"""SQLAlchemy ORM models for the marketplace state tables.

Layout: asks (collection+token), bids (collection+token+bidder), expiry_index
(instant -> order refs), escrow_balances (bid ref), plus sale hooks and bank
balances. Tables are rewritten as a whole snapshot on every save.
"""

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.mp_common.database import Base


class AskORM(Base):
    __tablename__ = "asks"

    collection: Mapped[str] = mapped_column(String(128), primary_key=True)
    token_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    seller: Mapped[str] = mapped_column(String(128), nullable=False)
    price_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    price_denom: Mapped[str] = mapped_column(String(64), nullable=False)
    expires: Mapped[int] = mapped_column(BigInteger, nullable=False)


class BidORM(Base):
    __tablename__ = "bids"

    collection: Mapped[str] = mapped_column(String(128), primary_key=True)
    token_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    bidder: Mapped[str] = mapped_column(String(128), primary_key=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    denom: Mapped[str] = mapped_column(String(64), nullable=False)
    expires: Mapped[int] = mapped_column(BigInteger, nullable=False)


class ExpiryIndexORM(Base):
    __tablename__ = "expiry_index"

    instant: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    kind: Mapped[str] = mapped_column(String(8), primary_key=True)  # OrderKind value
    collection: Mapped[str] = mapped_column(String(128), primary_key=True)
    token_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    bidder: Mapped[str] = mapped_column(String(128), primary_key=True, default="")
    # NOTE: bidder is "" for ask refs so the composite key stays non-null


class EscrowBalanceORM(Base):
    __tablename__ = "escrow_balances"

    collection: Mapped[str] = mapped_column(String(128), primary_key=True)
    token_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    bidder: Mapped[str] = mapped_column(String(128), primary_key=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)


class SaleHookORM(Base):
    __tablename__ = "sale_hooks"

    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    address: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)


class BalanceORM(Base):
    __tablename__ = "balances"

    account: Mapped[str] = mapped_column(String(128), primary_key=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class BankTotalsORM(Base):
    __tablename__ = "bank_totals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    burned: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_deposited: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
