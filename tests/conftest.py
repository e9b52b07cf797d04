"""Shared pytest fixtures for rentdesk tests."""

import os
import tempfile
from datetime import date, datetime

import pytest
from click.testing import CliRunner

from rentdesk.database.factories import create_sqlite_database
from rentdesk.database.memory import InMemoryDatabase
from rentdesk.domain.entities import AdditionalSales, CompanyType, SaleStatus
from rentdesk.domain.financial import FinancialService
from rentdesk.domain.goals import GoalsService
from rentdesk.domain.process import ProcessService
from rentdesk.domain.sale import SaleService

# Frozen "now" shared by the service fixtures
NOW = datetime(2024, 3, 15, 10, 0, 0)


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def memory_db():
    """Create an empty in-memory store."""
    return InMemoryDatabase()


@pytest.fixture(params=["sqlite", "memory"])
def any_db(request, tmp_path):
    """Run a test against both store implementations."""
    if request.param == "memory":
        yield InMemoryDatabase()
        return
    db = create_sqlite_database(database_path=str(tmp_path / "rentdesk.db"))
    db.connect()
    db.initialize_schema()
    yield db
    db.disconnect()


@pytest.fixture
def clock():
    """A clock frozen at NOW."""
    return FakeClock()


@pytest.fixture
def sale_service(memory_db, clock):
    """Create a SaleService with an in-memory store."""
    return SaleService(memory_db, clock=clock)


@pytest.fixture
def financial_service(memory_db):
    """Create a FinancialService with an in-memory store."""
    return FinancialService(memory_db)


@pytest.fixture
def goals_service(memory_db, clock):
    """Create a GoalsService with an in-memory store."""
    return GoalsService(memory_db, clock=clock)


@pytest.fixture
def process_service(memory_db, clock):
    """Create a ProcessService with an in-memory store."""
    return ProcessService(memory_db, clock=clock)


@pytest.fixture
def make_sale(sale_service):
    """Factory creating sales with sensible defaults; returns the Sale."""

    def _make_sale(**overrides):
        params = {
            "company": CompanyType.EXCLUSIVE,
            "client_name": "Ana Souza",
            "house_id": "h1",
            "house_name": "Casa Azul",
            "house_address": "Rua das Flores, 10 - Trancoso/BA",
            "check_in_date": date(2024, 1, 10),
            "check_out_date": date(2024, 1, 15),
            "contract_value": 10000.0,
            "status": SaleStatus.CONFIRMED,
        }
        params.update(overrides)
        sale_id = sale_service.create_sale(**params)
        return sale_service.get_sale(sale_id)

    return _make_sale


@pytest.fixture
def sample_sales(make_sale):
    """Three sales over two houses and two months, one of them cancelled."""
    first = make_sale(
        concierge_value=500.0,
        housekeeper_value=300.0,
        additional_sales=AdditionalSales(supermarket=200.0),
        client_gender="F",
        sale_origin="instagram",
    )
    second = make_sale(
        house_id="h2",
        house_name="Casa Verde",
        house_address="Av. Beira Mar, 200 - Caraíva/BA",
        check_in_date=date(2024, 2, 1),
        check_out_date=date(2024, 2, 4),
        contract_value=6000.0,
        discount=1000.0,
        company=CompanyType.GIOGIO,
        client_name="Bruno Lima",
        client_gender="M",
        sale_origin="google",
    )
    cancelled = make_sale(
        house_id="h2",
        house_name="Casa Verde",
        check_in_date=date(2024, 2, 10),
        check_out_date=date(2024, 2, 12),
        contract_value=4000.0,
        status=SaleStatus.CANCELLED,
        client_name="Carla Dias",
    )
    return [first, second, cancelled]


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()
