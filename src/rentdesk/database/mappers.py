"""Mapper functions to convert stored documents into domain entities.

Both store implementations keep records as flat documents (plain dicts with
string enum values and a nested step map). SQLAlchemy rows are first turned
into the same document shape so there is a single place that knows how a
document becomes an entity.
"""

from datetime import datetime
from typing import Any, Optional

from rentdesk.domain import entities as domain
from rentdesk.database.models import Base
from rentdesk.utils.money import to_money


def row_to_document(row: Base) -> dict[str, Any]:
    """Convert a SQLAlchemy row into a plain document dict."""
    document = {}
    for attribute in row.__mapper__.column_attrs:
        column = attribute.columns[0]
        document[column.name] = getattr(row, attribute.key)
    return document


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def steps_to_document(steps: dict[domain.ProcessStep, domain.StepState]) -> dict[str, Any]:
    """Serialize a step map keyed by step field name (menuSent, ...)."""
    return {
        step.field_name: {
            "completed": state.completed,
            "completedAt": state.completed_at.isoformat() if state.completed_at else None,
            "notes": state.notes,
        }
        for step, state in steps.items()
    }


def steps_from_document(document: Optional[dict[str, Any]]) -> dict[domain.ProcessStep, domain.StepState]:
    """Deserialize a step map; steps missing from the document are incomplete."""
    document = document or {}
    steps = {}
    for step in domain.ProcessStep:
        raw = document.get(step.field_name) or {}
        steps[step] = domain.StepState(
            completed=bool(raw.get("completed", False)),
            completed_at=_parse_timestamp(raw.get("completedAt")),
            notes=raw.get("notes"),
        )
    return steps


def sale_to_domain(document: dict[str, Any]) -> domain.Sale:
    """Convert a sale document to a domain Sale entity."""
    sale_origin = document.get("sale_origin")
    return domain.Sale(
        id=document["id"],
        code=document["code"],
        company=domain.CompanyType(document["company"]),
        status=domain.SaleStatus(document["status"]),
        client_id=document.get("client_id"),
        client_name=document["client_name"],
        client_gender=document.get("client_gender"),
        sale_origin=domain.SaleOrigin(sale_origin) if sale_origin else None,
        house_id=document["house_id"],
        house_name=document["house_name"],
        house_address=document.get("house_address") or "",
        check_in_date=document["check_in_date"],
        check_out_date=document["check_out_date"],
        number_of_nights=int(document.get("number_of_nights") or 0),
        number_of_guests=int(document.get("number_of_guests") or 0),
        contract_value=to_money(document.get("contract_value")),
        discount=to_money(document.get("discount")),
        net_value=to_money(document.get("net_value")),
        sales_commission=to_money(document.get("sales_commission")),
        housekeeper_value=to_money(document.get("housekeeper_value")),
        concierge_value=to_money(document.get("concierge_value")),
        additional_sales=domain.AdditionalSales.from_dict(document.get("additional_sales")),
        total_additional_sales=to_money(document.get("total_additional_sales")),
        total_revenue=to_money(document.get("total_revenue")),
        contribution_margin=to_money(document.get("contribution_margin")),
        notes=document.get("notes"),
        created_at=document["created_at"],
        updated_at=document["updated_at"],
    )


def annual_goal_to_domain(document: dict[str, Any]) -> domain.AnnualGoal:
    """Convert an annual goal document to a domain AnnualGoal entity."""
    return domain.AnnualGoal(
        id=document["id"],
        year=int(document["year"]),
        rental_sales_goal=to_money(document.get("rental_sales_goal")),
        contracts_quantity_goal=to_money(document.get("contracts_quantity_goal")),
        supplier_commission_goal=to_money(document.get("supplier_commission_goal")),
        concierge_goal=to_money(document.get("concierge_goal")),
        house_sales_goal=to_money(document.get("house_sales_goal")),
        created_by=document.get("created_by"),
        created_at=document["created_at"],
        updated_at=document["updated_at"],
    )


def monthly_goal_to_domain(document: dict[str, Any]) -> domain.MonthlyGoal:
    """Convert a monthly goal document to a domain MonthlyGoal entity."""
    return domain.MonthlyGoal(
        id=document["id"],
        year=int(document["year"]),
        month=int(document["month"]),
        rental_sales_goal=to_money(document.get("rental_sales_goal")),
        contracts_quantity_goal=to_money(document.get("contracts_quantity_goal")),
        supplier_commission_goal=to_money(document.get("supplier_commission_goal")),
        concierge_goal=to_money(document.get("concierge_goal")),
        house_sales_goal=to_money(document.get("house_sales_goal")),
        created_at=document["created_at"],
        updated_at=document["updated_at"],
    )


def process_to_domain(document: dict[str, Any]) -> domain.ConciergeProcess:
    """Convert a concierge process document to a domain ConciergeProcess entity."""
    return domain.ConciergeProcess(
        id=document["id"],
        reservation_id=document.get("reservation_id"),
        client_name=document["client_name"],
        house_id=document["house_id"],
        house_name=document["house_name"],
        check_in=document.get("check_in"),
        check_out=document.get("check_out"),
        current_step=domain.ProcessStep(document["current_step"]),
        status=domain.ProcessStatus(document["status"]),
        priority=domain.Priority(document["priority"]),
        created_at=document["created_at"],
        updated_at=document["updated_at"],
        steps=steps_from_document(document.get("steps")),
        total_duration_hours=float(document.get("total_duration_hours") or 0),
        average_step_hours=float(document.get("average_step_hours") or 0),
        overdue_steps=int(document.get("overdue_steps") or 0),
    )


def notification_to_domain(document: dict[str, Any]) -> domain.Notification:
    """Convert a notification document to a domain Notification entity."""
    return domain.Notification(
        id=document["id"],
        type=domain.NotificationType(document["type"]),
        title=document["title"],
        message=document["message"],
        priority=domain.Priority(document["priority"]),
        related_id=document.get("related_id"),
        related_type=domain.RelatedType(document["related_type"]),
        is_read=bool(document.get("is_read", False)),
        is_active=bool(document.get("is_active", True)),
        action_required=bool(document.get("action_required", False)),
        created_at=document["created_at"],
        scheduled_for=document.get("scheduled_for"),
        metadata=document.get("metadata"),
    )
