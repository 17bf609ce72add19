"""SQLAlchemy models for the ticketsync database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Date,
    Time,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


class ChannelMapping(Base):
    """Remote ticket/POS identifiers for a product occurrence.

    occurrence_key is empty for the product-level default.
    """

    __tablename__ = "channel_mappings"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, nullable=False, index=True)
    occurrence_key = Column(String, nullable=False, default="")
    remote_ticket_id = Column(String, nullable=False, default="")
    remote_pos_id = Column(String, nullable=False, default="")
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("product_id", "occurrence_key", name="uq_product_occurrence"),
    )


class LedgerEntry(Base):
    """Per-day, per-occurrence sales with a per-channel breakdown.

    Count columns are nullable so rows carried over from older ledgers can be
    stored as-is and skipped during aggregation.
    """

    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True)
    sale_date = Column(Date, nullable=False, index=True)
    entry_key = Column(String, nullable=False)
    product_id = Column(Integer, nullable=True, index=True)
    name = Column(String, nullable=False, default="")
    sku = Column(String, nullable=False, default="")
    booking_date = Column(Date, nullable=True)
    booking_time = Column(Time, nullable=True)
    quantity = Column(Integer, nullable=True)
    woocommerce = Column(Integer, nullable=True)
    eventbrite = Column(Integer, nullable=True)
    square = Column(Integer, nullable=True)

    __table_args__ = (UniqueConstraint("sale_date", "entry_key", name="uq_sale_date_entry"),)


class OperationLog(Base):
    """Audit trail of simulated (test mode) and live-logged operations."""

    __tablename__ = "operation_logs"

    id = Column(Integer, primary_key=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    source = Column(String, nullable=False)
    operation = Column(String, nullable=False)
    details = Column(Text, nullable=False, default="")
    test_mode = Column(Boolean, default=False, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
