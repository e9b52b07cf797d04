"""Abstract document-store interface."""

import copy
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from rentdesk.domain.entities import (
    AnnualGoal,
    ConciergeProcess,
    MonthlyGoal,
    Notification,
    Sale,
)


def apply_field_updates(document: dict[str, Any], fields: dict[str, Any]) -> dict[str, Any]:
    """Apply field-level updates to a document and return the new document.

    Keys may be dotted paths into nested maps (e.g.
    ``"steps.menuReceived.completed"``); missing intermediate maps are
    created. The input document is not modified.
    """
    updated = copy.deepcopy(document)
    for path, value in fields.items():
        target = updated
        parts = path.split(".")
        for part in parts[:-1]:
            child = target.get(part)
            if not isinstance(child, dict):
                child = {}
                target[part] = child
            target = child
        target[parts[-1]] = value
    return updated


class Database(ABC):
    """Abstract document store for rentdesk.

    Collections are queried by equality and range filters only; every
    aggregation happens in memory in the domain layer.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Sale operations
    @abstractmethod
    def create_sale(self, data: dict[str, Any]) -> int:
        """Create a sale document. Returns sale ID."""
        pass

    @abstractmethod
    def get_sale(self, sale_id: int) -> Optional[Sale]:
        """Get sale by ID."""
        pass

    @abstractmethod
    def list_sales(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        company: Optional[str] = None,
        status: Optional[str] = None,
        sale_origin: Optional[str] = None,
        house_id: Optional[str] = None,
    ) -> list[Sale]:
        """List sales, newest first.

        Args:
            start_date: Optional lower bound on check-in date (inclusive)
            end_date: Optional upper bound on check-in date (inclusive)
            company: Optional company equality filter
            status: Optional status equality filter
            sale_origin: Optional origin equality filter
            house_id: Optional house equality filter
        """
        pass

    @abstractmethod
    def update_sale(self, sale_id: int, fields: dict[str, Any]) -> None:
        """Update sale fields."""
        pass

    @abstractmethod
    def delete_sale(self, sale_id: int) -> None:
        """Delete a sale."""
        pass

    # Goal operations
    @abstractmethod
    def get_annual_goal(self, year: int) -> Optional[AnnualGoal]:
        """Get the annual goal for a year."""
        pass

    @abstractmethod
    def create_annual_goal(self, data: dict[str, Any]) -> int:
        """Create an annual goal. Returns goal ID."""
        pass

    @abstractmethod
    def update_annual_goal(self, goal_id: int, fields: dict[str, Any]) -> None:
        """Update annual goal fields."""
        pass

    @abstractmethod
    def get_monthly_goal(self, year: int, month: int) -> Optional[MonthlyGoal]:
        """Get the goal for a (year, month)."""
        pass

    @abstractmethod
    def list_monthly_goals(self, year: int) -> list[MonthlyGoal]:
        """List monthly goals of a year, ordered by month."""
        pass

    @abstractmethod
    def create_monthly_goal(self, data: dict[str, Any]) -> int:
        """Create a monthly goal. Returns goal ID."""
        pass

    @abstractmethod
    def update_monthly_goal(self, goal_id: int, fields: dict[str, Any]) -> None:
        """Update monthly goal fields."""
        pass

    # Concierge process operations
    @abstractmethod
    def create_process(self, data: dict[str, Any]) -> int:
        """Create a concierge process. Returns process ID."""
        pass

    @abstractmethod
    def get_process(self, process_id: int) -> Optional[ConciergeProcess]:
        """Get concierge process by ID."""
        pass

    @abstractmethod
    def list_processes(
        self,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        house_id: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        current_step: Optional[str] = None,
        reservation_id: Optional[int] = None,
    ) -> list[ConciergeProcess]:
        """List concierge processes, newest first."""
        pass

    @abstractmethod
    def update_process(self, process_id: int, fields: dict[str, Any]) -> None:
        """Update process fields.

        Step fields are addressed with dotted paths such as
        ``"steps.menuReceived.completed"``.
        """
        pass

    # Notification operations
    @abstractmethod
    def create_notification(self, data: dict[str, Any]) -> int:
        """Create a notification. Returns notification ID."""
        pass

    @abstractmethod
    def get_notification(self, notification_id: int) -> Optional[Notification]:
        """Get notification by ID."""
        pass

    @abstractmethod
    def list_notifications(
        self,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        is_read: Optional[bool] = None,
    ) -> list[Notification]:
        """List notifications, newest first."""
        pass

    @abstractmethod
    def update_notification(self, notification_id: int, fields: dict[str, Any]) -> None:
        """Update notification fields."""
        pass
