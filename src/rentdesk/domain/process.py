"""Concierge process and notification service.

Processes follow the fixed eight-step concierge sequence. Advancing a step
marks it complete, moves ``current_step`` and records one process_update
notification. Reads for the process dashboard go through DashboardLoader.
"""

import logging
import math
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Optional, Sequence, Union

from rentdesk.config import CONCIERGE_REMINDER_DAYS, PROCESS_CHART_DAYS
from rentdesk.database.base import Database
from rentdesk.database.mappers import steps_to_document
from rentdesk.domain.entities import (
    STEP_LABELS,
    ConciergeProcess,
    FutureReservation,
    Notification,
    NotificationType,
    Priority,
    ProcessStatus,
    ProcessStep,
    RelatedType,
    SaleStatus,
    empty_steps,
)
from rentdesk.domain.errors import (
    ConflictError,
    InvalidFilterError,
    NotFoundError,
    ValidationError,
    invalid_date_range,
    notification_not_found,
    process_not_found,
    sale_not_found,
)
from rentdesk.domain.loader import DashboardLoader
from rentdesk.domain.metrics import percentage_of, safe_average
from rentdesk.domain.reports import (
    HouseProcessMetrics,
    PeriodProcessMetrics,
    ProcessChartsData,
    ProcessCompletionDay,
    ProcessDashboard,
    ProcessFilters,
    ProcessMetrics,
    StepPerformance,
)

logger = logging.getLogger(__name__)

PROCESS_UPDATE_TITLE = "Processo Atualizado"
CONCIERGE_REMINDER_TITLE = "Lembrete de Concierge"

ACTION_REQUIRED_PRIORITIES = (Priority.HIGH, Priority.URGENT)


def _month_start(value: datetime) -> datetime:
    return datetime(value.year, value.month, 1)


def _average_duration(processes: Sequence[ConciergeProcess]) -> float:
    completed = [p for p in processes if p.status == ProcessStatus.COMPLETED]
    return safe_average(sum(p.total_duration_hours for p in completed), len(completed))


def _period_metrics(
    reservations: Sequence[FutureReservation],
    processes: Sequence[ConciergeProcess],
    start: datetime,
    end: Optional[datetime] = None,
) -> PeriodProcessMetrics:
    def inside(created_at: datetime) -> bool:
        return created_at >= start and (end is None or created_at < end)

    period_processes = [p for p in processes if inside(p.created_at)]
    return PeriodProcessMetrics(
        new_reservations=sum(1 for r in reservations if inside(r.created_at)),
        completed_processes=sum(1 for p in period_processes if p.status == ProcessStatus.COMPLETED),
        average_time=_average_duration(period_processes),
    )


def house_metrics(processes: Sequence[ConciergeProcess]) -> tuple[HouseProcessMetrics, ...]:
    """Per-house process totals, in order of first appearance."""
    by_house: dict[str, list[ConciergeProcess]] = defaultdict(list)
    for process in processes:
        by_house[process.house_id].append(process)

    results = []
    for house_id, house_processes in by_house.items():
        completed = sum(1 for p in house_processes if p.status == ProcessStatus.COMPLETED)
        results.append(
            HouseProcessMetrics(
                house_id=house_id,
                house_name=house_processes[0].house_name,
                total_processes=len(house_processes),
                completed_processes=completed,
                average_time=_average_duration(house_processes),
                completion_rate=percentage_of(completed, len(house_processes)),
            )
        )
    return tuple(results)


def calculate_metrics(
    reservations: Sequence[FutureReservation],
    processes: Sequence[ConciergeProcess],
    now: datetime,
) -> ProcessMetrics:
    """Headline metrics of the process dashboard."""
    this_month = _month_start(now)
    last_month = _month_start(this_month - timedelta(days=1))
    completed = sum(1 for p in processes if p.status == ProcessStatus.COMPLETED)
    return ProcessMetrics(
        total_reservations=len(reservations),
        active_concierge_processes=sum(1 for p in processes if p.status == ProcessStatus.IN_PROGRESS),
        completed_processes=completed,
        overdue_processes=sum(1 for p in processes if p.overdue_steps > 0),
        average_process_time=_average_duration(processes),
        completion_rate=percentage_of(completed, len(processes)),
        this_month=_period_metrics(reservations, processes, this_month),
        last_month=_period_metrics(reservations, processes, last_month, this_month),
        by_house=house_metrics(processes),
    )


def calculate_charts(
    reservations: Sequence[FutureReservation],
    processes: Sequence[ConciergeProcess],
    now: datetime,
) -> ProcessChartsData:
    """Chart series of the process dashboard.

    The completion series covers the last PROCESS_CHART_DAYS days up to and
    including today, bucketing processes by creation day.
    """
    by_day: dict[date, list[ConciergeProcess]] = defaultdict(list)
    for process in processes:
        by_day[process.created_at.date()].append(process)

    today = now.date()
    completion = []
    for offset in range(PROCESS_CHART_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_processes = by_day.get(day, [])
        completion.append(
            ProcessCompletionDay(
                date=day.isoformat(),
                completed=sum(1 for p in day_processes if p.status == ProcessStatus.COMPLETED),
                pending=sum(1 for p in day_processes if p.status == ProcessStatus.PENDING),
                overdue=sum(1 for p in day_processes if p.overdue_steps > 0),
            )
        )

    step_performance = []
    for step in ProcessStep:
        completed_step = [p for p in processes if p.steps[step].completed]
        step_performance.append(
            StepPerformance(
                step=step,
                step_label=STEP_LABELS[step],
                average_time=safe_average(
                    sum(p.average_step_hours for p in completed_step), len(completed_step)
                ),
                completion_rate=percentage_of(len(completed_step), len(processes)),
                total_processes=sum(1 for p in processes if p.current_step == step),
            )
        )

    return ProcessChartsData(
        process_completion=tuple(completion),
        step_performance=tuple(step_performance),
        house_performance=house_metrics(processes),
    )


def days_until(check_in: date, now: datetime) -> int:
    """Whole days from now until the start of the check-in day, rounded up."""
    delta = datetime.combine(check_in, time()) - now
    return math.ceil(delta.total_seconds() / 86400)


class ProcessService:
    """Service for concierge processes and notifications."""

    def __init__(
        self,
        db: Database,
        clock: Callable[[], datetime] = datetime.now,
        loader: Optional[DashboardLoader] = None,
    ):
        """Initialize process service.

        Args:
            db: Database instance
            clock: Returns the current timestamp
            loader: Loader used for dashboard reads (a new one by default)
        """
        self.db = db
        self.clock = clock
        self.loader = loader or DashboardLoader()

    # Reads

    def future_reservations(self, filters: ProcessFilters) -> list[FutureReservation]:
        """Sales checking in inside the filter window, earliest first.

        Raises:
            InvalidFilterError: If the window starts after it ends
        """
        if filters.start > filters.end:
            raise InvalidFilterError(invalid_date_range(filters.start, filters.end))
        sales = self.db.list_sales(
            start_date=filters.start.date(),
            end_date=filters.end.date(),
            house_id=filters.house_id,
        )
        if filters.status:
            sales = [sale for sale in sales if sale.status.value == filters.status]

        process_ids = {
            process.reservation_id: process.id
            for process in self.db.list_processes()
            if process.reservation_id is not None
        }
        reservations = [
            FutureReservation(
                id=sale.id,
                client_name=sale.client_name,
                house_id=sale.house_id,
                house_name=sale.house_name,
                check_in=sale.check_in_date,
                check_out=sale.check_out_date,
                total_days=sale.number_of_nights,
                total_value=sale.total_revenue,
                concierge_required=sale.concierge_value > 0,
                concierge_process_id=process_ids.get(sale.id),
                status=sale.status,
                created_at=sale.created_at,
            )
            for sale in sales
        ]
        reservations.sort(key=lambda reservation: (reservation.check_in, reservation.id))
        return reservations

    def concierge_processes(self, filters: ProcessFilters) -> list[ConciergeProcess]:
        """Processes created inside the filter window, newest first."""
        if filters.start > filters.end:
            raise InvalidFilterError(invalid_date_range(filters.start, filters.end))
        return self.db.list_processes(
            created_from=filters.start,
            created_to=filters.end,
            house_id=filters.house_id,
            status=filters.status,
            priority=filters.priority,
            current_step=filters.step,
        )

    def notifications(self, filters: ProcessFilters) -> list[Notification]:
        """Notifications created inside the filter window, newest first."""
        if filters.start > filters.end:
            raise InvalidFilterError(invalid_date_range(filters.start, filters.end))
        return self.db.list_notifications(created_from=filters.start, created_to=filters.end)

    def get_process(self, process_id: int) -> Optional[ConciergeProcess]:
        return self.db.get_process(process_id)

    def dashboard(self, filters: ProcessFilters) -> ProcessDashboard:
        """Load the three collections concurrently and derive metrics and charts.

        Raises:
            DataSourceError: If any of the reads fails
            StaleResultError: If a newer dashboard load superseded this one
        """
        results = self.loader.load(
            filters.key,
            {
                "reservations": lambda: self.future_reservations(filters),
                "processes": lambda: self.concierge_processes(filters),
                "notifications": lambda: self.notifications(filters),
            },
        )
        now = self.clock()
        reservations = results["reservations"]
        processes = results["processes"]
        return ProcessDashboard(
            reservations=tuple(reservations),
            processes=tuple(processes),
            notifications=tuple(results["notifications"]),
            metrics=calculate_metrics(reservations, processes, now),
            charts=calculate_charts(reservations, processes, now),
            filters=filters,
        )

    # Writes

    def create_process(
        self,
        sale_id: int,
        priority: Union[Priority, str] = Priority.MEDIUM,
    ) -> int:
        """Open a concierge process for a reservation.

        Returns:
            Process ID

        Raises:
            NotFoundError: If the sale doesn't exist
            ConflictError: If the reservation already has a process
            ValidationError: If the sale is cancelled or the priority unknown
        """
        sale = self.db.get_sale(sale_id)
        if sale is None:
            raise NotFoundError(sale_not_found(sale_id))
        if sale.status == SaleStatus.CANCELLED:
            raise ValidationError(f"Sale {sale_id} is cancelled")
        if self.db.list_processes(reservation_id=sale_id):
            raise ConflictError(f"Sale {sale_id} already has a concierge process")
        try:
            priority = Priority(priority)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        now = self.clock()
        process_id = self.db.create_process(
            {
                "reservation_id": sale.id,
                "client_name": sale.client_name,
                "house_id": sale.house_id,
                "house_name": sale.house_name,
                "check_in": sale.check_in_date,
                "check_out": sale.check_out_date,
                "current_step": ProcessStep.MENU_SENT,
                "status": ProcessStatus.PENDING,
                "priority": priority,
                "steps": steps_to_document(empty_steps()),
                "created_at": now,
                "updated_at": now,
            }
        )
        logger.info("Created concierge process %s for sale %s", process_id, sale_id)
        return process_id

    def advance_step(
        self,
        process_id: int,
        step: Union[ProcessStep, str],
        notes: Optional[str] = None,
    ) -> int:
        """Mark a step complete and make it the current step.

        Other step flags are left untouched. Any step is accepted; a step that
        is not the immediate successor of the current one is logged. The first
        advance moves a pending process to in_progress, and completing every
        step closes it.

        Returns:
            ID of the process_update notification

        Raises:
            NotFoundError: If the process doesn't exist
            ValidationError: If the step is unknown
        """
        try:
            step = ProcessStep(step)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        process = self.db.get_process(process_id)
        if process is None:
            raise NotFoundError(process_not_found(process_id))

        if process.completed_steps:
            expected = process.current_step.next_step()
        else:
            expected = process.current_step
        if step != expected:
            logger.warning(
                "Process %s advanced to '%s' but the next step is '%s'",
                process_id,
                step.value,
                expected.value if expected else None,
            )

        now = self.clock()
        prefix = f"steps.{step.field_name}"
        fields: dict[str, Any] = {
            "current_step": step,
            "updated_at": now,
            f"{prefix}.completed": True,
            f"{prefix}.completedAt": now.isoformat(),
        }
        if notes:
            fields[f"{prefix}.notes"] = notes

        all_done = all(state.completed or other == step for other, state in process.steps.items())
        if all_done:
            duration = (now - process.created_at).total_seconds() / 3600
            fields["status"] = ProcessStatus.COMPLETED
            fields["total_duration_hours"] = duration
            fields["average_step_hours"] = duration / len(ProcessStep)
        elif process.status == ProcessStatus.PENDING:
            fields["status"] = ProcessStatus.IN_PROGRESS

        self.db.update_process(process_id, fields)
        logger.info("Process %s completed step '%s'", process_id, step.value)

        return self.create_notification(
            NotificationType.PROCESS_UPDATE,
            PROCESS_UPDATE_TITLE,
            f'Etapa "{STEP_LABELS[step]}" foi concluída',
            related_id=process_id,
            related_type=RelatedType.CONCIERGE_PROCESS,
            priority=Priority.MEDIUM,
        )

    def create_notification(
        self,
        notification_type: Union[NotificationType, str],
        title: str,
        message: str,
        related_id: Optional[int],
        related_type: Union[RelatedType, str],
        priority: Union[Priority, str] = Priority.MEDIUM,
        scheduled_for: Optional[datetime] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> int:
        """Record a notification.

        High and urgent notifications require action.

        Returns:
            Notification ID
        """
        priority = Priority(priority)
        return self.db.create_notification(
            {
                "type": NotificationType(notification_type),
                "title": title,
                "message": message,
                "priority": priority,
                "related_id": related_id,
                "related_type": RelatedType(related_type),
                "is_read": False,
                "is_active": True,
                "action_required": priority in ACTION_REQUIRED_PRIORITIES,
                "scheduled_for": scheduled_for,
                "metadata": metadata,
                "created_at": self.clock(),
            }
        )

    def mark_notification_read(self, notification_id: int) -> None:
        """Flag a notification as read.

        Raises:
            NotFoundError: If the notification doesn't exist
        """
        if self.db.get_notification(notification_id) is None:
            raise NotFoundError(notification_not_found(notification_id))
        self.db.update_notification(notification_id, {"is_read": True})

    def generate_reservation_notifications(self, now: Optional[datetime] = None) -> list[int]:
        """Remind about upcoming reservations that still lack a concierge process.

        Looks CONCIERGE_REMINDER_DAYS ahead. Reservations that are cancelled,
        need no concierge, already have a process or already have a reminder
        are skipped.

        Returns:
            IDs of the notifications created
        """
        now = now or self.clock()
        window = ProcessFilters(start=now, end=now + timedelta(days=CONCIERGE_REMINDER_DAYS))
        reminded = {
            n.related_id
            for n in self.db.list_notifications()
            if n.type == NotificationType.CONCIERGE_REMINDER and n.related_type == RelatedType.RESERVATION
        }

        created = []
        for reservation in self.future_reservations(window):
            if reservation.status == SaleStatus.CANCELLED:
                continue
            if not reservation.concierge_required or reservation.concierge_process_id is not None:
                continue
            if reservation.id in reminded:
                continue
            days = days_until(reservation.check_in, now)
            created.append(
                self.create_notification(
                    NotificationType.CONCIERGE_REMINDER,
                    CONCIERGE_REMINDER_TITLE,
                    f"Cliente {reservation.client_name} chega em {days} dias. "
                    "Processo de concierge necessário.",
                    related_id=reservation.id,
                    related_type=RelatedType.RESERVATION,
                    priority=Priority.HIGH,
                    metadata={
                        "clientName": reservation.client_name,
                        "houseName": reservation.house_name,
                        "daysUntilCheckIn": days,
                    },
                )
            )
        logger.info("Generated %d concierge reminders", len(created))
        return created
