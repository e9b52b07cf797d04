"""Domain model entities for rentdesk.

These are pure data classes representing business concepts, independent of
the document store. Stored records (sales, goals, processes, notifications)
live here; derived report views live in ``rentdesk.domain.reports``.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from enum import Enum
from decimal import Decimal
from typing import Any, Optional

from rentdesk.utils.money import ZERO, to_money


class CompanyType(str, Enum):
    """Company that owns a sale."""

    EXCLUSIVE = "exclusive"
    GIOGIO = "giogio"
    DIRETA = "direta"


class SaleStatus(str, Enum):
    """Lifecycle status of a sale."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SaleOrigin(str, Enum):
    """Marketing channel a sale came from."""

    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    GOOGLE = "google"
    INDICACAO = "indicacao"
    WHATSAPP = "whatsapp"
    SITE = "site"
    OUTROS = "outros"


class PeriodGrouping(str, Enum):
    """Time bucket used for period grouping."""

    DAY = "day"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class Dimension(str, Enum):
    """Categorical dimension used for demographic grouping."""

    HOUSE = "house"
    GENDER = "gender"
    LOCATION = "location"
    ORIGIN = "origin"


class GoalCategory(str, Enum):
    """Goal categories tracked by the goals dashboard."""

    RENTAL_SALES = "rental_sales"
    CONTRACTS_QUANTITY = "contracts_quantity"
    SUPPLIER_COMMISSION = "supplier_commission"
    CONCIERGE = "concierge"
    HOUSE_SALES = "house_sales"


class GoalStatus(str, Enum):
    """Three-way classification of achieved vs goal."""

    BELOW_TARGET = "below_target"
    ON_TRACK = "on_track"
    EXCEEDED = "exceeded"


class GoalPeriod(str, Enum):
    """Period covered by a goals dashboard."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class ProcessStep(str, Enum):
    """The eight concierge steps, in their fixed linear order."""

    MENU_SENT = "menu_sent"
    MENU_RECEIVED = "menu_received"
    SHOPPING_LIST = "shopping_list"
    CLIENT_APPROVAL = "client_approval"
    SUPPLIER_SENT = "supplier_sent"
    PAYMENT_SENT = "payment_sent"
    INVOICES_RECEIVED = "invoices_received"
    RECEIPTS_SENT = "receipts_sent"

    @property
    def field_name(self) -> str:
        """Document field name for this step (e.g. 'menuReceived')."""
        head, *rest = self.value.split("_")
        return head + "".join(part.capitalize() for part in rest)

    @property
    def index(self) -> int:
        return list(ProcessStep).index(self)

    def next_step(self) -> Optional["ProcessStep"]:
        """Return the immediate successor, or None for the last step."""
        steps = list(ProcessStep)
        position = steps.index(self)
        if position + 1 < len(steps):
            return steps[position + 1]
        return None

    @classmethod
    def from_field_name(cls, name: str) -> "ProcessStep":
        for step in cls:
            if step.field_name == name:
                return step
        raise ValueError(f"Unknown process step field '{name}'")


STEP_LABELS = {
    ProcessStep.MENU_SENT: "Cardápio Enviado",
    ProcessStep.MENU_RECEIVED: "Cardápio Recebido",
    ProcessStep.SHOPPING_LIST: "Lista de Compras",
    ProcessStep.CLIENT_APPROVAL: "Aprovação do Cliente",
    ProcessStep.SUPPLIER_SENT: "Enviado para Fornecedores",
    ProcessStep.PAYMENT_SENT: "Notas para Pagamento",
    ProcessStep.INVOICES_RECEIVED: "Notas Recebidas",
    ProcessStep.RECEIPTS_SENT: "Comprovante Enviado",
}


class ProcessStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationType(str, Enum):
    CONCIERGE_REMINDER = "concierge_reminder"
    PAYMENT_REMINDER = "payment_reminder"
    PROCESS_UPDATE = "process_update"
    DEADLINE_WARNING = "deadline_warning"


class RelatedType(str, Enum):
    RESERVATION = "reservation"
    CONCIERGE_PROCESS = "concierge_process"


# Supplier commission fields of AdditionalSales, in display order
ADDITIONAL_SALES_FIELDS = (
    "supermarket",
    "seafood",
    "seafood_meat",
    "transfer",
    "vegetables",
    "coconuts",
)


@dataclass(frozen=True)
class AdditionalSales:
    """Supplier commissions attached to a sale."""

    supermarket: Decimal = ZERO
    seafood: Decimal = ZERO
    seafood_meat: Decimal = ZERO
    transfer: Decimal = ZERO
    vegetables: Decimal = ZERO
    coconuts: Decimal = ZERO

    def __post_init__(self):
        for name in ADDITIONAL_SALES_FIELDS:
            object.__setattr__(self, name, to_money(getattr(self, name)))

    @property
    def total(self) -> Decimal:
        return (
            self.supermarket
            + self.seafood
            + self.seafood_meat
            + self.transfer
            + self.vegetables
            + self.coconuts
        )

    def to_dict(self) -> dict[str, float]:
        """JSON-friendly form; amounts have at most two decimals."""
        return {
            "supermarket": float(self.supermarket),
            "seafood": float(self.seafood),
            "seafoodMeat": float(self.seafood_meat),
            "transfer": float(self.transfer),
            "vegetables": float(self.vegetables),
            "coconuts": float(self.coconuts),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "AdditionalSales":
        data = data or {}
        return cls(
            supermarket=to_money(data.get("supermarket")),
            seafood=to_money(data.get("seafood")),
            seafood_meat=to_money(data.get("seafoodMeat")),
            transfer=to_money(data.get("transfer")),
            vegetables=to_money(data.get("vegetables")),
            coconuts=to_money(data.get("coconuts")),
        )


@dataclass(frozen=True)
class SaleCalculations:
    """Monetary values derived from a sale's inputs."""

    number_of_nights: int
    net_value: Decimal
    sales_commission: Decimal
    total_additional_sales: Decimal
    total_revenue: Decimal
    contribution_margin: Decimal


@dataclass(frozen=True)
class Sale:
    """Sale (rental transaction) domain entity."""

    id: int
    code: str
    company: CompanyType
    status: SaleStatus
    client_id: Optional[str]
    client_name: str
    client_gender: Optional[str]
    sale_origin: Optional[SaleOrigin]
    house_id: str
    house_name: str
    house_address: str
    check_in_date: date
    check_out_date: date
    number_of_nights: int
    number_of_guests: int
    contract_value: Decimal
    discount: Decimal
    net_value: Decimal
    sales_commission: Decimal
    housekeeper_value: Decimal
    concierge_value: Decimal
    additional_sales: AdditionalSales
    total_additional_sales: Decimal
    total_revenue: Decimal
    contribution_margin: Decimal
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    @property
    def expenses(self) -> Decimal:
        """Housekeeper cost plus sales commission."""
        return self.housekeeper_value + self.sales_commission


@dataclass(frozen=True)
class AnnualGoal:
    """Target values per category for a year."""

    id: int
    year: int
    rental_sales_goal: Decimal
    contracts_quantity_goal: Decimal
    supplier_commission_goal: Decimal
    concierge_goal: Decimal
    house_sales_goal: Decimal
    created_by: Optional[str]
    created_at: datetime
    updated_at: datetime

    def goal_for(self, category: GoalCategory) -> Decimal:
        return getattr(self, f"{category.value}_goal")

    @property
    def total_goal(self) -> Decimal:
        return sum((self.goal_for(category) for category in GoalCategory), ZERO)


@dataclass(frozen=True)
class MonthlyGoal:
    """Target values per category for a single month."""

    id: int
    year: int
    month: int
    rental_sales_goal: Decimal
    contracts_quantity_goal: Decimal
    supplier_commission_goal: Decimal
    concierge_goal: Decimal
    house_sales_goal: Decimal
    created_at: datetime
    updated_at: datetime

    def goal_for(self, category: GoalCategory) -> Decimal:
        return getattr(self, f"{category.value}_goal")


@dataclass(frozen=True)
class StepState:
    """Completion state of one concierge step."""

    completed: bool = False
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None


def empty_steps() -> dict[ProcessStep, StepState]:
    """Return a fresh step map with every step incomplete."""
    return {step: StepState() for step in ProcessStep}


@dataclass(frozen=True)
class ConciergeProcess:
    """Concierge workflow instance attached to a reservation."""

    id: int
    reservation_id: Optional[int]
    client_name: str
    house_id: str
    house_name: str
    check_in: Optional[date]
    check_out: Optional[date]
    current_step: ProcessStep
    status: ProcessStatus
    priority: Priority
    created_at: datetime
    updated_at: datetime
    steps: dict[ProcessStep, StepState] = field(default_factory=empty_steps)
    total_duration_hours: float = 0.0
    average_step_hours: float = 0.0
    overdue_steps: int = 0

    @property
    def completed_steps(self) -> int:
        return sum(1 for state in self.steps.values() if state.completed)

    @property
    def total_steps(self) -> int:
        return len(ProcessStep)


@dataclass(frozen=True)
class Notification:
    """Immutable event record; only the read flag ever changes."""

    id: int
    type: NotificationType
    title: str
    message: str
    priority: Priority
    related_id: Optional[int]
    related_type: RelatedType
    is_read: bool
    is_active: bool
    action_required: bool
    created_at: datetime
    scheduled_for: Optional[datetime] = None
    metadata: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class FutureReservation:
    """Read projection of a sale used by the process dashboard."""

    id: int
    client_name: str
    house_id: str
    house_name: str
    check_in: date
    check_out: date
    total_days: int
    total_value: Decimal
    concierge_required: bool
    concierge_process_id: Optional[int]
    status: SaleStatus
    created_at: datetime
