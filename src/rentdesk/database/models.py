"""SQLAlchemy models for the rentdesk document store."""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()


class Sale(Base):
    """Sale (rental transaction) model."""

    __tablename__ = "sales"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, nullable=False)
    company = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, index=True)
    client_id = Column(String, nullable=True)
    client_name = Column(String, nullable=False)
    client_gender = Column(String, nullable=True)
    sale_origin = Column(String, nullable=True)
    house_id = Column(String, nullable=False, index=True)
    house_name = Column(String, nullable=False)
    house_address = Column(String, nullable=False, default="")
    check_in_date = Column(Date, nullable=False, index=True)
    check_out_date = Column(Date, nullable=False)
    number_of_nights = Column(Integer, nullable=False, default=0)
    number_of_guests = Column(Integer, nullable=False, default=0)
    contract_value = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    net_value = Column(Numeric(12, 2), nullable=False, default=0)
    sales_commission = Column(Numeric(12, 2), nullable=False, default=0)
    housekeeper_value = Column(Numeric(12, 2), nullable=False, default=0)
    concierge_value = Column(Numeric(12, 2), nullable=False, default=0)
    # Supplier commission map keyed like the stored document (seafoodMeat, ...)
    additional_sales = Column(JSON, nullable=False, default=dict)
    total_additional_sales = Column(Numeric(12, 2), nullable=False, default=0)
    total_revenue = Column(Numeric(12, 2), nullable=False, default=0)
    contribution_margin = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, nullable=False)


class AnnualGoal(Base):
    """Annual goal model, one row per year."""

    __tablename__ = "annual_goals"

    id = Column(Integer, primary_key=True)
    year = Column(Integer, unique=True, nullable=False)
    rental_sales_goal = Column(Numeric(12, 2), nullable=False, default=0)
    contracts_quantity_goal = Column(Numeric(12, 2), nullable=False, default=0)
    supplier_commission_goal = Column(Numeric(12, 2), nullable=False, default=0)
    concierge_goal = Column(Numeric(12, 2), nullable=False, default=0)
    house_sales_goal = Column(Numeric(12, 2), nullable=False, default=0)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, nullable=False)


class MonthlyGoal(Base):
    """Monthly goal model, one row per (year, month)."""

    __tablename__ = "monthly_goals"

    id = Column(Integer, primary_key=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    rental_sales_goal = Column(Numeric(12, 2), nullable=False, default=0)
    contracts_quantity_goal = Column(Numeric(12, 2), nullable=False, default=0)
    supplier_commission_goal = Column(Numeric(12, 2), nullable=False, default=0)
    concierge_goal = Column(Numeric(12, 2), nullable=False, default=0)
    house_sales_goal = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, nullable=False)

    __table_args__ = (UniqueConstraint("year", "month", name="uq_monthly_goal_year_month"),)


class ConciergeProcess(Base):
    """Concierge process model.

    The eight step states live in a single JSON map keyed by step field name
    (menuSent, menuReceived, ...), each holding completed/completedAt/notes.
    """

    __tablename__ = "concierge_processes"

    id = Column(Integer, primary_key=True)
    reservation_id = Column(Integer, nullable=True, index=True)
    client_name = Column(String, nullable=False)
    house_id = Column(String, nullable=False, index=True)
    house_name = Column(String, nullable=False)
    check_in = Column(Date, nullable=True)
    check_out = Column(Date, nullable=True)
    current_step = Column(String, nullable=False)
    status = Column(String, nullable=False, index=True)
    priority = Column(String, nullable=False)
    steps = Column(JSON, nullable=False, default=dict)
    total_duration_hours = Column(Float, nullable=False, default=0.0)
    average_step_hours = Column(Float, nullable=False, default=0.0)
    overdue_steps = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, nullable=False)


class Notification(Base):
    """Notification model."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    priority = Column(String, nullable=False)
    related_id = Column(Integer, nullable=True)
    related_type = Column(String, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    action_required = Column(Boolean, default=False, nullable=False)
    scheduled_for = Column(DateTime, nullable=True)
    # "metadata" is reserved on declarative models
    extra = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
