# backend/fintrack/models.py
import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Enum, Numeric, UniqueConstraint, Boolean, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class AssetType(str, enum.Enum):
    STOCK = "STOCK"
    CRYPTO = "CRYPTO"
    ETF = "ETF"
    BOND = "BOND"
    COMMODITY = "COMMODITY"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationship: One User has Many Portfolios
    portfolios: Mapped[list["Portfolio"]] = relationship(back_populates="owner")
    settings: Mapped["UserSettings | None"] = relationship(
        back_populates="user",
        uselist=False,  # One-to-one relationship
        cascade="all, delete-orphan"
    )


class UserSettings(Base):
    """
    Per-user valuation preferences.

    Stores the EUR price calibration state:
    - eur_price_adjustment_factor: multiplier applied to EUR-denominated prices
    - reference_portfolio_value: the trusted EUR value the factor was solved for
    - last_calibration_at: when the factor was last derived

    A missing row is equivalent to factor 1.0 with no calibration.
    """
    __tablename__ = "user_settings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        unique=True,  # One settings record per user
        index=True
    )

    # Numeric(20, 10) keeps the solved factor exact enough to reproduce the reference to the cent
    eur_price_adjustment_factor: Mapped[Decimal] = mapped_column(Numeric(20, 10), default=Decimal("1"))
    reference_portfolio_value: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True, default=None)
    last_calibration_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    user: Mapped["User"] = relationship(back_populates="settings")


class Portfolio(Base):
    __tablename__ = "portfolios"
    __table_args__ = (
        Index("ix_portfolio_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    name: Mapped[str] = mapped_column(String)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    owner: Mapped["User"] = relationship(back_populates="portfolios")
    holdings: Mapped[list["Holding"]] = relationship(
        back_populates="portfolio",
        cascade="all, delete-orphan",
        order_by="Holding.id",
    )


class Asset(Base):
    """
    Global table of assets shared by all users.

    Prices are stored in the asset's native currency and refreshed by the
    market data feed. A NULL current_price means no live price has been
    received yet.
    """
    __tablename__ = "assets"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    symbol: Mapped[str] = mapped_column(String, unique=True, index=True)  # e.g. "AAPL", "BTC-USD", "SAP.DE"
    name: Mapped[str] = mapped_column(String)
    type: Mapped[AssetType] = mapped_column(Enum(AssetType))
    currency: Mapped[str] = mapped_column(String, default="USD")  # ISO code of current_price / previous_close

    # Use Decimal with high precision to support crypto (up to 8 decimal places)
    current_price: Mapped[Decimal | None] = mapped_column(Numeric(18, 8), nullable=True)
    previous_close: Mapped[Decimal | None] = mapped_column(Numeric(18, 8), nullable=True)
    change_percent: Mapped[Decimal | None] = mapped_column(Numeric(10, 4), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    holdings: Mapped[list["Holding"]] = relationship(back_populates="asset")


class Holding(Base):
    """
    A quantity of one asset inside one portfolio.

    avg_buy_price is stored in EUR, converted at acquisition time.
    """
    __tablename__ = "holdings"
    __table_args__ = (
        UniqueConstraint('portfolio_id', 'asset_id', name='uq_holding_portfolio_asset'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    portfolio_id: Mapped[int] = mapped_column(ForeignKey("portfolios.id"), index=True)
    asset_id: Mapped[int] = mapped_column(ForeignKey("assets.id"), index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    avg_buy_price: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    portfolio: Mapped["Portfolio"] = relationship(back_populates="holdings")
    asset: Mapped["Asset"] = relationship(back_populates="holdings")


class AssetCalibration(Base):
    """
    Per-asset price calibration for one user.

    adjustment_factor = reference_price / asset.current_price at the time of
    calibration. Stored for display and future use; the portfolio valuation
    price path does not read it.
    """
    __tablename__ = "asset_calibrations"
    __table_args__ = (
        UniqueConstraint('user_id', 'asset_id', name='uq_asset_calibration_user_asset'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    asset_id: Mapped[int] = mapped_column(ForeignKey("assets.id"), index=True)
    adjustment_factor: Mapped[Decimal] = mapped_column(Numeric(20, 10), default=Decimal("1"))
    reference_price: Mapped[Decimal | None] = mapped_column(Numeric(18, 8), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    asset: Mapped["Asset"] = relationship()
