"""Tests for concierge processes and notifications."""

from datetime import date, datetime, timedelta

import pytest

from rentdesk.database.memory import PROCESSES, InMemoryDatabase
from rentdesk.domain.entities import (
    NotificationType,
    Priority,
    ProcessStatus,
    ProcessStep,
    RelatedType,
    SaleStatus,
)
from rentdesk.domain.errors import ConflictError, DataSourceError, InvalidFilterError, NotFoundError, ValidationError
from rentdesk.domain.process import (
    CONCIERGE_REMINDER_TITLE,
    PROCESS_UPDATE_TITLE,
    ProcessService,
    days_until,
)
from rentdesk.domain.reports import ProcessFilters
from rentdesk.domain.sale import SaleService

MARCH = ProcessFilters(start=datetime(2024, 3, 1), end=datetime(2024, 3, 31, 23, 59, 59))


@pytest.fixture
def march_sale(make_sale):
    """Confirmed sale with concierge checking in five days after NOW."""
    return make_sale(
        check_in_date=date(2024, 3, 20),
        check_out_date=date(2024, 3, 27),
        concierge_value=800.0,
    )


def _advance_all(service, process_id, clock, hours_per_step=2):
    for step in ProcessStep:
        clock.now += timedelta(hours=hours_per_step)
        service.advance_step(process_id, step)


class TestCreateProcess:
    """Tests for opening concierge processes."""

    def test_create_process(self, march_sale, process_service):
        """Test that a new process starts at the first step, pending."""
        process_id = process_service.create_process(march_sale.id, priority="high")
        process = process_service.get_process(process_id)

        assert process.reservation_id == march_sale.id
        assert process.client_name == march_sale.client_name
        assert process.current_step == ProcessStep.MENU_SENT
        assert process.status == ProcessStatus.PENDING
        assert process.priority == Priority.HIGH
        assert process.completed_steps == 0
        assert set(process.steps) == set(ProcessStep)

    def test_missing_sale(self, process_service):
        with pytest.raises(NotFoundError):
            process_service.create_process(42)

    def test_cancelled_sale(self, march_sale, process_service, sale_service):
        sale_service.update_status(march_sale.id, SaleStatus.CANCELLED)
        with pytest.raises(ValidationError):
            process_service.create_process(march_sale.id)

    def test_one_process_per_reservation(self, march_sale, process_service):
        process_service.create_process(march_sale.id)
        with pytest.raises(ConflictError):
            process_service.create_process(march_sale.id)


class TestAdvanceStep:
    """Tests for step advancement."""

    def test_advance_first_step(self, march_sale, process_service, memory_db):
        """Test that advancing marks the step and records a notification."""
        process_id = process_service.create_process(march_sale.id)

        notification_id = process_service.advance_step(process_id, "menu_sent", notes="Enviado por WhatsApp")

        process = process_service.get_process(process_id)
        state = process.steps[ProcessStep.MENU_SENT]
        assert state.completed
        assert state.completed_at == datetime(2024, 3, 15, 10, 0, 0)
        assert state.notes == "Enviado por WhatsApp"
        assert process.current_step == ProcessStep.MENU_SENT
        assert process.status == ProcessStatus.IN_PROGRESS
        # Other steps are untouched
        assert not process.steps[ProcessStep.MENU_RECEIVED].completed

        notification = memory_db.get_notification(notification_id)
        assert notification.type == NotificationType.PROCESS_UPDATE
        assert notification.title == PROCESS_UPDATE_TITLE
        assert notification.message == 'Etapa "Cardápio Enviado" foi concluída'
        assert notification.related_id == process_id
        assert notification.related_type == RelatedType.CONCIERGE_PROCESS
        assert not notification.action_required

    def test_out_of_order_step_is_accepted(self, march_sale, process_service, caplog):
        """Test that skipping ahead works but is logged."""
        process_id = process_service.create_process(march_sale.id)

        process_service.advance_step(process_id, ProcessStep.SHOPPING_LIST)

        process = process_service.get_process(process_id)
        assert process.current_step == ProcessStep.SHOPPING_LIST
        assert process.completed_steps == 1
        assert "next step is 'menu_sent'" in caplog.text

    def test_all_steps_complete_the_process(self, march_sale, process_service, clock):
        """Test that completing the eighth step closes the process."""
        process_id = process_service.create_process(march_sale.id)

        _advance_all(process_service, process_id, clock)

        process = process_service.get_process(process_id)
        assert process.status == ProcessStatus.COMPLETED
        assert process.current_step == ProcessStep.RECEIPTS_SENT
        assert process.completed_steps == 8
        assert process.total_duration_hours == pytest.approx(16.0)
        assert process.average_step_hours == pytest.approx(2.0)

    def test_unknown_step(self, march_sale, process_service):
        process_id = process_service.create_process(march_sale.id)
        with pytest.raises(ValidationError):
            process_service.advance_step(process_id, "dessert_served")

    def test_missing_process(self, process_service):
        with pytest.raises(NotFoundError):
            process_service.advance_step(7, "menu_sent")

    def test_menu_received_writes_one_notification(self, march_sale, process_service, memory_db):
        """Test that advancing a fresh process to menu_received changes nothing else."""
        process_id = process_service.create_process(march_sale.id)

        process_service.advance_step(process_id, "menu_received")

        process = process_service.get_process(process_id)
        assert len(memory_db.list_notifications()) == 1
        assert process.steps[ProcessStep.MENU_RECEIVED].completed
        assert [step for step, state in process.steps.items() if state.completed] == [ProcessStep.MENU_RECEIVED]

    @pytest.mark.parametrize("step", list(ProcessStep))
    @pytest.mark.parametrize(
        "done_before",
        [
            (),
            (ProcessStep.MENU_SENT,),
            (ProcessStep.MENU_SENT, ProcessStep.MENU_RECEIVED, ProcessStep.SHOPPING_LIST),
            (ProcessStep.CLIENT_APPROVAL, ProcessStep.INVOICES_RECEIVED),
        ],
    )
    def test_advance_touches_only_its_step(self, march_sale, process_service, memory_db, clock, step, done_before):
        """Test that each advance sets one step flag and adds one notification."""
        process_id = process_service.create_process(march_sale.id)
        for earlier in done_before:
            process_service.advance_step(process_id, earlier)
        clock.now += timedelta(hours=1)
        before = process_service.get_process(process_id).steps
        notifications_before = len(memory_db.list_notifications())

        process_service.advance_step(process_id, step)

        after = process_service.get_process(process_id)
        assert len(memory_db.list_notifications()) == notifications_before + 1
        assert after.current_step == step
        assert after.steps[step].completed
        assert after.steps[step].completed_at == clock.now
        for other in ProcessStep:
            if other != step:
                assert after.steps[other] == before[other]


class TestNotifications:
    """Tests for notifications."""

    def test_high_priority_requires_action(self, process_service, memory_db):
        notification_id = process_service.create_notification(
            "deadline_warning", "Prazo", "Notas vencem amanhã", None, "reservation", priority="urgent"
        )

        assert memory_db.get_notification(notification_id).action_required

    def test_mark_read(self, process_service, memory_db):
        notification_id = process_service.create_notification(
            "payment_reminder", "Pagamento", "Enviar comprovante", 1, "reservation"
        )

        process_service.mark_notification_read(notification_id)

        assert memory_db.get_notification(notification_id).is_read

    def test_mark_read_missing(self, process_service):
        with pytest.raises(NotFoundError):
            process_service.mark_notification_read(99)

    def test_generate_reservation_reminders(self, march_sale, make_sale, process_service, memory_db):
        """Test reminders for upcoming reservations lacking a process."""
        # Outside the ten-day window
        make_sale(
            house_id="h3",
            check_in_date=date(2024, 4, 20),
            check_out_date=date(2024, 4, 22),
            concierge_value=100.0,
        )
        # No concierge requested
        make_sale(house_id="h4", check_in_date=date(2024, 3, 18), check_out_date=date(2024, 3, 20))

        created = process_service.generate_reservation_notifications()

        assert len(created) == 1
        reminder = memory_db.get_notification(created[0])
        assert reminder.type == NotificationType.CONCIERGE_REMINDER
        assert reminder.title == CONCIERGE_REMINDER_TITLE
        assert reminder.priority == Priority.HIGH
        assert reminder.action_required
        assert reminder.related_id == march_sale.id
        assert reminder.metadata == {
            "clientName": "Ana Souza",
            "houseName": "Casa Azul",
            "daysUntilCheckIn": 5,
        }

    def test_reminders_are_not_repeated(self, march_sale, process_service):
        assert len(process_service.generate_reservation_notifications()) == 1
        assert process_service.generate_reservation_notifications() == []

    def test_no_reminder_when_process_exists(self, march_sale, process_service):
        process_service.create_process(march_sale.id)

        assert process_service.generate_reservation_notifications() == []

    def test_days_until_rounds_up(self):
        assert days_until(date(2024, 3, 20), datetime(2024, 3, 15, 10, 0)) == 5
        assert days_until(date(2024, 3, 15), datetime(2024, 3, 15, 0, 0)) == 0


class TestProcessDashboard:
    """Tests for the process dashboard."""

    def test_future_reservations(self, march_sale, make_sale, process_service):
        """Test reservations inside the window, earliest first, with their process."""
        early = make_sale(
            house_id="h2",
            house_name="Casa Verde",
            check_in_date=date(2024, 3, 5),
            check_out_date=date(2024, 3, 8),
        )
        make_sale(house_id="h3", check_in_date=date(2024, 4, 5), check_out_date=date(2024, 4, 8))
        process_id = process_service.create_process(march_sale.id)

        reservations = process_service.future_reservations(MARCH)

        assert [r.id for r in reservations] == [early.id, march_sale.id]
        assert reservations[0].concierge_process_id is None
        assert reservations[1].concierge_process_id == process_id
        assert reservations[1].concierge_required
        assert reservations[1].total_days == 7

    def test_status_filter_applies_to_reservations(self, march_sale, make_sale, process_service):
        make_sale(house_id="h2", check_in_date=date(2024, 3, 5), check_out_date=date(2024, 3, 8), status="pending")

        reservations = process_service.future_reservations(
            ProcessFilters(start=MARCH.start, end=MARCH.end, status="pending")
        )

        assert [r.status for r in reservations] == [SaleStatus.PENDING]

    def test_invalid_window(self, process_service):
        with pytest.raises(InvalidFilterError):
            process_service.future_reservations(ProcessFilters(start=MARCH.end, end=MARCH.start))

    def test_dashboard_metrics(self, march_sale, make_sale, process_service, clock):
        """Test metrics and charts over one completed and one pending process."""
        other = make_sale(
            house_id="h2",
            house_name="Casa Verde",
            check_in_date=date(2024, 3, 22),
            check_out_date=date(2024, 3, 25),
        )
        done_id = process_service.create_process(march_sale.id)
        process_service.create_process(other.id)
        _advance_all(process_service, done_id, clock)

        dashboard = process_service.dashboard(MARCH)

        metrics = dashboard.metrics
        assert metrics.total_reservations == 2
        assert metrics.completed_processes == 1
        assert metrics.active_concierge_processes == 0
        assert metrics.completion_rate == pytest.approx(50.0)
        assert metrics.average_process_time == pytest.approx(16.0)
        assert metrics.this_month.completed_processes == 1
        assert metrics.last_month.new_reservations == 0
        assert {h.house_id for h in metrics.by_house} == {"h1", "h2"}

        charts = dashboard.charts
        assert len(charts.process_completion) == 30
        assert charts.process_completion[-1].date == clock.now.date().isoformat()
        menu_sent = charts.step_performance[0]
        assert menu_sent.step == ProcessStep.MENU_SENT
        assert menu_sent.completion_rate == pytest.approx(50.0)
        assert menu_sent.total_processes == 1
        assert all(0 <= s.completion_rate <= 100 for s in charts.step_performance)
        assert len(dashboard.notifications) == 8

    def test_dashboard_fails_when_a_collection_fails(self, clock):
        db = InMemoryDatabase(failing=[PROCESSES])
        SaleService(db, clock=clock).create_sale(
            company="exclusive",
            client_name="Ana",
            house_id="h1",
            house_name="Casa Azul",
            check_in_date=date(2024, 3, 20),
            check_out_date=date(2024, 3, 22),
            contract_value=1000.0,
        )
        service = ProcessService(db, clock=clock)

        with pytest.raises(DataSourceError):
            service.dashboard(MARCH)

    def test_repeated_dashboards_release_connections(self, temp_db, clock):
        """Test that concurrent dashboard reads on SQLite return their connections."""
        sale_id = SaleService(temp_db, clock=clock).create_sale(
            company="exclusive",
            client_name="Ana",
            house_id="h1",
            house_name="Casa Azul",
            check_in_date=date(2024, 3, 20),
            check_out_date=date(2024, 3, 22),
            contract_value=1000.0,
            concierge_value=300.0,
        )
        service = ProcessService(temp_db, clock=clock)
        service.create_process(sale_id)

        for _ in range(25):
            dashboard = service.dashboard(MARCH)
            assert temp_db.engine.pool.checkedout() == 0

        assert len(dashboard.reservations) == 1
        assert len(dashboard.processes) == 1
