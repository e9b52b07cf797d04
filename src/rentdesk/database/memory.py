"""In-memory document store.

Used as the injectable data source in tests and for quick experiments. It
honours the same filter and ordering contract as the SQLAlchemy store, and
can be told to fail reads of whole collections to exercise degraded paths.
"""

import copy
import threading
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from rentdesk.database.base import Database, apply_field_updates
from rentdesk.database.mappers import (
    annual_goal_to_domain,
    monthly_goal_to_domain,
    notification_to_domain,
    process_to_domain,
    sale_to_domain,
)
from rentdesk.domain.entities import (
    AnnualGoal,
    ConciergeProcess,
    MonthlyGoal,
    Notification,
    Sale,
)
from rentdesk.domain.errors import (
    DataSourceError,
    NotFoundError,
    data_source_failure,
    notification_not_found,
    process_not_found,
    sale_not_found,
)

SALES = "sales"
ANNUAL_GOALS = "annual_goals"
MONTHLY_GOALS = "monthly_goals"
PROCESSES = "concierge_processes"
NOTIFICATIONS = "notifications"

COLLECTIONS = (SALES, ANNUAL_GOALS, MONTHLY_GOALS, PROCESSES, NOTIFICATIONS)

_ROW_DEFAULTS = {
    SALES: {"additional_sales": {}, "notes": None},
    PROCESSES: {"steps": {}, "reservation_id": None},
    NOTIFICATIONS: {"is_read": False, "is_active": True, "action_required": False},
}


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


class InMemoryDatabase(Database):
    """Dict-backed implementation of the Database interface."""

    def __init__(self, failing: Iterable[str] = ()):
        """Initialize an empty store.

        Args:
            failing: Collection names whose operations raise DataSourceError
        """
        self.failing = set(failing)
        self._lock = threading.Lock()
        self._collections: dict[str, dict[int, dict[str, Any]]] = {name: {} for name in COLLECTIONS}
        self._next_ids = {name: 1 for name in COLLECTIONS}

    def connect(self) -> None:
        pass

    def disconnect(self) -> None:
        pass

    def initialize_schema(self) -> None:
        pass

    def _check(self, collection: str, operation: str) -> None:
        if collection in self.failing:
            raise DataSourceError(data_source_failure(operation))

    def _insert(self, collection: str, data: dict[str, Any], operation: str) -> int:
        self._check(collection, operation)
        now = datetime.now()
        with self._lock:
            doc_id = self._next_ids[collection]
            self._next_ids[collection] += 1
            document = {"created_at": now, "updated_at": now}
            document.update(copy.deepcopy(_ROW_DEFAULTS.get(collection, {})))
            document.update({key: _plain(value) for key, value in copy.deepcopy(data).items()})
            document["id"] = doc_id
            if collection == NOTIFICATIONS:
                document.pop("updated_at", None)
            self._collections[collection][doc_id] = document
            return doc_id

    def _get(self, collection: str, doc_id: int, operation: str) -> Optional[dict[str, Any]]:
        self._check(collection, operation)
        with self._lock:
            document = self._collections[collection].get(doc_id)
            return copy.deepcopy(document) if document is not None else None

    def _select(
        self,
        collection: str,
        operation: str,
        predicate: Callable[[dict[str, Any]], bool],
    ) -> list[dict[str, Any]]:
        self._check(collection, operation)
        with self._lock:
            documents = [copy.deepcopy(doc) for doc in self._collections[collection].values() if predicate(doc)]
        documents.sort(key=lambda doc: (doc["created_at"], doc["id"]), reverse=True)
        return documents

    def _modify(self, collection: str, doc_id: int, fields: dict[str, Any], operation: str, missing: str) -> None:
        self._check(collection, operation)
        with self._lock:
            document = self._collections[collection].get(doc_id)
            if document is None:
                raise NotFoundError(missing)
            plain = {key: _plain(value) for key, value in fields.items()}
            self._collections[collection][doc_id] = apply_field_updates(document, plain)

    # Sale operations
    def create_sale(self, data: dict[str, Any]) -> int:
        return self._insert(SALES, data, "create sale")

    def get_sale(self, sale_id: int) -> Optional[Sale]:
        document = self._get(SALES, sale_id, "load sale")
        return sale_to_domain(document) if document is not None else None

    def list_sales(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        company: Optional[str] = None,
        status: Optional[str] = None,
        sale_origin: Optional[str] = None,
        house_id: Optional[str] = None,
    ) -> list[Sale]:
        def matches(doc: dict[str, Any]) -> bool:
            if start_date is not None and doc["check_in_date"] < start_date:
                return False
            if end_date is not None and doc["check_in_date"] > end_date:
                return False
            if company is not None and doc["company"] != _plain(company):
                return False
            if status is not None and doc["status"] != _plain(status):
                return False
            if sale_origin is not None and doc.get("sale_origin") != _plain(sale_origin):
                return False
            if house_id is not None and doc["house_id"] != house_id:
                return False
            return True

        return [sale_to_domain(doc) for doc in self._select(SALES, "load sales", matches)]

    def update_sale(self, sale_id: int, fields: dict[str, Any]) -> None:
        self._modify(SALES, sale_id, fields, "update sale", sale_not_found(sale_id))

    def delete_sale(self, sale_id: int) -> None:
        self._check(SALES, "delete sale")
        with self._lock:
            if self._collections[SALES].pop(sale_id, None) is None:
                raise NotFoundError(sale_not_found(sale_id))

    # Goal operations
    def get_annual_goal(self, year: int) -> Optional[AnnualGoal]:
        documents = self._select(ANNUAL_GOALS, "load annual goal", lambda doc: doc["year"] == year)
        return annual_goal_to_domain(documents[0]) if documents else None

    def create_annual_goal(self, data: dict[str, Any]) -> int:
        return self._insert(ANNUAL_GOALS, data, "create annual goal")

    def update_annual_goal(self, goal_id: int, fields: dict[str, Any]) -> None:
        self._modify(ANNUAL_GOALS, goal_id, fields, "update annual goal", f"Annual goal {goal_id} not found")

    def get_monthly_goal(self, year: int, month: int) -> Optional[MonthlyGoal]:
        documents = self._select(
            MONTHLY_GOALS,
            "load monthly goal",
            lambda doc: doc["year"] == year and doc["month"] == month,
        )
        return monthly_goal_to_domain(documents[0]) if documents else None

    def list_monthly_goals(self, year: int) -> list[MonthlyGoal]:
        documents = self._select(MONTHLY_GOALS, "load monthly goals", lambda doc: doc["year"] == year)
        documents.sort(key=lambda doc: doc["month"])
        return [monthly_goal_to_domain(doc) for doc in documents]

    def create_monthly_goal(self, data: dict[str, Any]) -> int:
        return self._insert(MONTHLY_GOALS, data, "create monthly goal")

    def update_monthly_goal(self, goal_id: int, fields: dict[str, Any]) -> None:
        self._modify(MONTHLY_GOALS, goal_id, fields, "update monthly goal", f"Monthly goal {goal_id} not found")

    # Concierge process operations
    def create_process(self, data: dict[str, Any]) -> int:
        return self._insert(PROCESSES, data, "create concierge process")

    def get_process(self, process_id: int) -> Optional[ConciergeProcess]:
        document = self._get(PROCESSES, process_id, "load concierge process")
        return process_to_domain(document) if document is not None else None

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
        def matches(doc: dict[str, Any]) -> bool:
            if created_from is not None and doc["created_at"] < created_from:
                return False
            if created_to is not None and doc["created_at"] > created_to:
                return False
            if house_id is not None and doc["house_id"] != house_id:
                return False
            if status is not None and doc["status"] != _plain(status):
                return False
            if priority is not None and doc["priority"] != _plain(priority):
                return False
            if current_step is not None and doc["current_step"] != _plain(current_step):
                return False
            if reservation_id is not None and doc.get("reservation_id") != reservation_id:
                return False
            return True

        documents = self._select(PROCESSES, "load concierge processes", matches)
        return [process_to_domain(doc) for doc in documents]

    def update_process(self, process_id: int, fields: dict[str, Any]) -> None:
        self._modify(
            PROCESSES,
            process_id,
            fields,
            "update concierge process",
            process_not_found(process_id),
        )

    # Notification operations
    def create_notification(self, data: dict[str, Any]) -> int:
        return self._insert(NOTIFICATIONS, data, "create notification")

    def get_notification(self, notification_id: int) -> Optional[Notification]:
        document = self._get(NOTIFICATIONS, notification_id, "load notification")
        return notification_to_domain(document) if document is not None else None

    def list_notifications(
        self,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        is_read: Optional[bool] = None,
    ) -> list[Notification]:
        def matches(doc: dict[str, Any]) -> bool:
            if created_from is not None and doc["created_at"] < created_from:
                return False
            if created_to is not None and doc["created_at"] > created_to:
                return False
            if is_read is not None and doc["is_read"] != is_read:
                return False
            return True

        documents = self._select(NOTIFICATIONS, "load notifications", matches)
        return [notification_to_domain(doc) for doc in documents]

    def update_notification(self, notification_id: int, fields: dict[str, Any]) -> None:
        self._modify(
            NOTIFICATIONS,
            notification_id,
            fields,
            "update notification",
            notification_not_found(notification_id),
        )
