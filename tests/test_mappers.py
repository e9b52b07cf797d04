"""Tests for database mappers."""

from datetime import date, datetime

from rentdesk.database.mappers import (
    notification_to_domain,
    process_to_domain,
    row_to_document,
    sale_to_domain,
    steps_from_document,
    steps_to_document,
)
from rentdesk.database.models import Notification as ORMNotification
from rentdesk.database.models import Sale as ORMSale
from rentdesk.domain.entities import (
    CompanyType,
    Notification,
    NotificationType,
    Priority,
    ProcessStatus,
    ProcessStep,
    RelatedType,
    Sale,
    SaleOrigin,
    SaleStatus,
    StepState,
    empty_steps,
)

CREATED = datetime(2024, 3, 1, 9, 30)


def _sale_document(**overrides):
    document = {
        "id": 7,
        "code": "VND-000007",
        "company": "giogio",
        "status": "confirmed",
        "client_name": "Bruno Lima",
        "house_id": "h2",
        "house_name": "Casa Verde",
        "house_address": "Av. Beira Mar, 200 - Caraíva/BA",
        "check_in_date": date(2024, 2, 1),
        "check_out_date": date(2024, 2, 4),
        "number_of_nights": 3,
        "contract_value": 6000,
        "discount": 1000,
        "net_value": 5000,
        "additional_sales": {"seafoodMeat": 150, "coconuts": 50},
        "total_additional_sales": 200,
        "total_revenue": 5200,
        "created_at": CREATED,
        "updated_at": CREATED,
    }
    document.update(overrides)
    return document


class TestStepMapping:
    """Tests for the step map serialization."""

    def test_steps_use_camel_case_keys(self):
        """Test that steps are keyed by their field names."""
        steps = empty_steps()
        steps[ProcessStep.MENU_RECEIVED] = StepState(True, datetime(2024, 3, 2, 8, 0), "ok")

        document = steps_to_document(steps)

        assert set(document) == {step.field_name for step in ProcessStep}
        assert document["menuReceived"] == {
            "completed": True,
            "completedAt": "2024-03-02T08:00:00",
            "notes": "ok",
        }
        assert document["receiptsSent"]["completedAt"] is None

    def test_steps_from_document_fills_missing_steps(self):
        """Test that absent steps come back incomplete."""
        steps = steps_from_document({"menuSent": {"completed": True, "completedAt": "2024-03-01T10:00:00"}})

        assert len(steps) == 8
        assert steps[ProcessStep.MENU_SENT].completed_at == datetime(2024, 3, 1, 10, 0)
        assert steps[ProcessStep.SHOPPING_LIST] == StepState()

    def test_steps_from_none(self):
        assert steps_from_document(None) == empty_steps()


class TestSaleMapper:
    """Tests for Sale mapper."""

    def test_sale_to_domain(self):
        """Test converting a sale document to a domain Sale."""
        sale = sale_to_domain(_sale_document(sale_origin="google"))

        assert isinstance(sale, Sale)
        assert sale.company == CompanyType.GIOGIO
        assert sale.status == SaleStatus.CONFIRMED
        assert sale.sale_origin == SaleOrigin.GOOGLE
        assert sale.additional_sales.seafood_meat == 150.0
        assert sale.additional_sales.supermarket == 0.0
        assert sale.number_of_guests == 0
        assert sale.sales_commission == 0.0

    def test_missing_origin_maps_to_none(self):
        assert sale_to_domain(_sale_document(sale_origin="")).sale_origin is None

    def test_row_to_document_then_domain(self):
        """Test that ORM rows go through the same document shape."""
        row = ORMSale(**_sale_document(sale_origin=None))

        document = row_to_document(row)
        sale = sale_to_domain(document)

        assert document["code"] == "VND-000007"
        assert sale.house_name == "Casa Verde"
        assert sale.net_value == 5000.0


class TestProcessMapper:
    """Tests for ConciergeProcess mapper."""

    def test_process_to_domain(self):
        process = process_to_domain(
            {
                "id": 3,
                "reservation_id": 7,
                "client_name": "Bruno Lima",
                "house_id": "h2",
                "house_name": "Casa Verde",
                "check_in": date(2024, 2, 1),
                "check_out": date(2024, 2, 4),
                "current_step": "shopping_list",
                "status": "in_progress",
                "priority": "high",
                "steps": {
                    "menuSent": {"completed": True, "completedAt": "2024-01-20T10:00:00"},
                    "menuReceived": {"completed": True, "completedAt": "2024-01-21T10:00:00"},
                },
                "created_at": CREATED,
                "updated_at": CREATED,
            }
        )

        assert process.current_step == ProcessStep.SHOPPING_LIST
        assert process.status == ProcessStatus.IN_PROGRESS
        assert process.priority == Priority.HIGH
        assert process.completed_steps == 2
        assert process.overdue_steps == 0


class TestNotificationMapper:
    """Tests for Notification mapper."""

    def test_metadata_column_round_trips_through_row(self):
        """Test that the 'metadata' column lands in Notification.metadata."""
        row = ORMNotification(
            id=1,
            type="concierge_reminder",
            title="Concierge pendente",
            message="Criar processo",
            priority="high",
            related_id=7,
            related_type="reservation",
            is_read=False,
            is_active=True,
            action_required=True,
            extra={"days_until": 3},
            created_at=CREATED,
        )

        notification = notification_to_domain(row_to_document(row))

        assert isinstance(notification, Notification)
        assert notification.type == NotificationType.CONCIERGE_REMINDER
        assert notification.related_type == RelatedType.RESERVATION
        assert notification.metadata == {"days_until": 3}
        assert notification.action_required is True
        assert notification.scheduled_for is None
