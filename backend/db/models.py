"""SQLAlchemy ORM models for the claim, booster and whitelist tables.

Table layout mirrors migrations/0001_initial.sql; any change needs a new
numbered migration.
"""

from sqlalchemy import BigInteger, MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=convention)


class Claimers(Base):
    __tablename__ = "claimers"

    testnet_address: Mapped[str] = mapped_column(primary_key=True)
    discord_id: Mapped[str] = mapped_column(nullable=False)
    total_reward: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    claimed_tx_id: Mapped[str] = mapped_column(nullable=False, default="")


class BoosterParties(Base):
    __tablename__ = "booster_parties"

    twitter_id: Mapped[str] = mapped_column(primary_key=True)
    twitter_name: Mapped[str] = mapped_column(nullable=False)
    discord_id: Mapped[str] = mapped_column(nullable=False)
    validator_address: Mapped[str] = mapped_column(nullable=False)
    validator_public_key: Mapped[str] = mapped_column(nullable=False, default="")
    amount_pac: Mapped[int] = mapped_column(nullable=False)
    total_price: Mapped[int] = mapped_column(nullable=False)
    invoice_id: Mapped[str] = mapped_column(nullable=False, default="")
    invoice_url: Mapped[str] = mapped_column(nullable=False, default="")
    payment_settled: Mapped[bool] = mapped_column(nullable=False, default=False)
    transaction_id: Mapped[str] = mapped_column(nullable=False, default="")
    created_at: Mapped[str] = mapped_column(nullable=False)


class TwitterWhitelist(Base):
    __tablename__ = "twitter_whitelist"

    twitter_id: Mapped[str] = mapped_column(primary_key=True)
    twitter_name: Mapped[str] = mapped_column(nullable=False)
    whitelisted_by: Mapped[str] = mapped_column(nullable=False)
    created_at: Mapped[str] = mapped_column(nullable=False)
