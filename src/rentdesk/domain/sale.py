"""Sale domain service."""

import logging
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional, Union

from rentdesk.config import SALE_CODE_PREFIX, SALES_COMMISSION_RATE
from rentdesk.database.base import Database
from rentdesk.domain.entities import (
    AdditionalSales,
    CompanyType,
    Sale,
    SaleCalculations,
    SaleOrigin,
    SaleStatus,
)
from rentdesk.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    sale_not_found,
)
from rentdesk.domain.grouping import filter_by_company, filter_by_period
from rentdesk.domain.metrics import safe_average, total_of
from rentdesk.domain.reports import SaleStats
from rentdesk.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)

_CODE_NUMBER = re.compile(r"(\d+)$")

# Amounts accepted by the service; they are rounded to cents on the way in
Money = Union[Decimal, int, float, str]


def calculate_sale_values(
    check_in_date: date,
    check_out_date: date,
    contract_value: Money,
    discount: Money = ZERO,
    housekeeper_value: Money = ZERO,
    concierge_value: Money = ZERO,
    additional_sales: Optional[AdditionalSales] = None,
) -> SaleCalculations:
    """Compute the derived monetary values of a sale.

    Args:
        check_in_date: Check-in date
        check_out_date: Check-out date
        contract_value: Contracted daily-rate value
        discount: Discount on the contract value
        housekeeper_value: Housekeeper cost
        concierge_value: Concierge charge
        additional_sales: Supplier commissions

    Returns:
        SaleCalculations with nights, net value, commission, revenue and margin.
        Every amount is rounded to cents.
    """
    additional_sales = additional_sales or AdditionalSales()
    housekeeper_value = to_money(housekeeper_value)
    concierge_value = to_money(concierge_value)
    number_of_nights = max((check_out_date - check_in_date).days, 0)
    net_value = to_money(contract_value) - to_money(discount)
    sales_commission = to_money(net_value * SALES_COMMISSION_RATE)
    total_additional_sales = additional_sales.total
    total_revenue = net_value + concierge_value + total_additional_sales
    contribution_margin = net_value - sales_commission - housekeeper_value - total_additional_sales
    return SaleCalculations(
        number_of_nights=number_of_nights,
        net_value=net_value,
        sales_commission=sales_commission,
        total_additional_sales=total_additional_sales,
        total_revenue=total_revenue,
        contribution_margin=contribution_margin,
    )


def _overlaps(sale: Sale, check_in_date: date, check_out_date: date) -> bool:
    return check_in_date < sale.check_out_date and check_out_date > sale.check_in_date


class SaleService:
    """Service for managing sales."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = datetime.now):
        """Initialize sale service.

        Args:
            db: Database instance
            clock: Returns the current timestamp
        """
        self.db = db
        self.clock = clock

    def next_code(self) -> str:
        """Return the next sequential sale code (e.g. VND-000001)."""
        highest = 0
        for sale in self.db.list_sales():
            match = _CODE_NUMBER.search(sale.code or "")
            if match:
                highest = max(highest, int(match.group(1)))
        return f"{SALE_CODE_PREFIX}-{highest + 1:06d}"

    def check_house_availability(
        self,
        house_id: str,
        check_in_date: date,
        check_out_date: date,
        exclude_sale_id: Optional[int] = None,
    ) -> bool:
        """Check that no active sale of the house overlaps the given stay.

        Cancelled sales never block a house. Stays that touch (check-out day
        equals the next check-in day) do not overlap.
        """
        for sale in self.db.list_sales(house_id=house_id):
            if sale.id == exclude_sale_id or sale.status == SaleStatus.CANCELLED:
                continue
            if _overlaps(sale, check_in_date, check_out_date):
                return False
        return True

    def create_sale(
        self,
        company: Union[CompanyType, str],
        client_name: str,
        house_id: str,
        house_name: str,
        check_in_date: date,
        check_out_date: date,
        contract_value: Money,
        discount: Money = ZERO,
        housekeeper_value: Money = ZERO,
        concierge_value: Money = ZERO,
        additional_sales: Optional[AdditionalSales] = None,
        house_address: str = "",
        client_id: Optional[str] = None,
        client_gender: Optional[str] = None,
        sale_origin: Optional[Union[SaleOrigin, str]] = None,
        number_of_guests: int = 0,
        status: Union[SaleStatus, str] = SaleStatus.PENDING,
        notes: Optional[str] = None,
    ) -> int:
        """Create a sale.

        Derived values (nights, net value, commission, revenue, margin) are
        computed here and stored with the sale.

        Returns:
            Sale ID

        Raises:
            ValidationError: If the stay or any amount is invalid
            ConflictError: If the house is already booked for the stay
        """
        if not client_name or not client_name.strip():
            raise ValidationError("Client name is required")
        if not house_id:
            raise ValidationError("House is required")
        if check_out_date <= check_in_date:
            raise ValidationError(
                f"Check-out date {check_out_date} must be after check-in date {check_in_date}"
            )
        contract_value = to_money(contract_value)
        discount = to_money(discount)
        housekeeper_value = to_money(housekeeper_value)
        concierge_value = to_money(concierge_value)
        additional_sales = additional_sales or AdditionalSales()
        amounts = {
            "contract value": contract_value,
            "discount": discount,
            "housekeeper value": housekeeper_value,
            "concierge value": concierge_value,
            "additional sales": additional_sales.total,
        }
        for label, amount in amounts.items():
            if amount < 0:
                raise ValidationError(f"The {label} cannot be negative")
        if discount > contract_value:
            raise ValidationError("The discount cannot exceed the contract value")
        if number_of_guests < 0:
            raise ValidationError("Number of guests cannot be negative")

        try:
            company = CompanyType(company)
            status = SaleStatus(status)
            sale_origin = SaleOrigin(sale_origin) if sale_origin else None
        except ValueError as e:
            raise ValidationError(str(e)) from e

        if not self.check_house_availability(house_id, check_in_date, check_out_date):
            raise ConflictError(
                f"House '{house_name}' is already booked between {check_in_date} and {check_out_date}"
            )

        calculations = calculate_sale_values(
            check_in_date,
            check_out_date,
            contract_value,
            discount,
            housekeeper_value,
            concierge_value,
            additional_sales,
        )
        now = self.clock()
        code = self.next_code()
        sale_id = self.db.create_sale(
            {
                "code": code,
                "company": company,
                "status": status,
                "client_id": client_id,
                "client_name": client_name.strip(),
                "client_gender": client_gender,
                "sale_origin": sale_origin,
                "house_id": house_id,
                "house_name": house_name,
                "house_address": house_address,
                "check_in_date": check_in_date,
                "check_out_date": check_out_date,
                "number_of_nights": calculations.number_of_nights,
                "number_of_guests": number_of_guests,
                "contract_value": contract_value,
                "discount": discount,
                "net_value": calculations.net_value,
                "sales_commission": calculations.sales_commission,
                "housekeeper_value": housekeeper_value,
                "concierge_value": concierge_value,
                "additional_sales": additional_sales.to_dict(),
                "total_additional_sales": calculations.total_additional_sales,
                "total_revenue": calculations.total_revenue,
                "contribution_margin": calculations.contribution_margin,
                "notes": notes,
                "created_at": now,
                "updated_at": now,
            }
        )
        logger.info("Created sale %s (%s) for house %s", sale_id, code, house_id)
        return sale_id

    def get_sale(self, sale_id: int) -> Optional[Sale]:
        """Get sale by ID.

        Args:
            sale_id: Sale ID

        Returns:
            Sale entity or None if not found
        """
        return self.db.get_sale(sale_id)

    def list_sales(
        self,
        company: Optional[Union[CompanyType, str]] = None,
        status: Optional[Union[SaleStatus, str]] = None,
        sale_origin: Optional[Union[SaleOrigin, str]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
    ) -> list[Sale]:
        """List sales, newest first.

        Args:
            company: Optional company filter ("all" keeps every company)
            status: Optional status filter
            sale_origin: Optional origin filter
            start_date: Optional start of the check-in range (inclusive)
            end_date: Optional end of the check-in range (inclusive)
            search: Optional case-insensitive text matched against code, client
                and house names

        Returns:
            List of Sale entities
        """
        if company == "all":
            company = None
        sales = self.db.list_sales(company=company, status=status, sale_origin=sale_origin)
        # Validates the range, then filters
        sales = filter_by_period(sales, start_date, end_date)
        if search:
            needle = search.lower()
            sales = [
                sale
                for sale in sales
                if needle in sale.code.lower()
                or needle in sale.client_name.lower()
                or needle in sale.house_name.lower()
            ]
        return sales

    def stats(self, company: Optional[Union[CompanyType, str]] = None) -> SaleStats:
        """Headline numbers over every registered sale.

        Cancelled sales are counted and summed like any other; the per-status
        counts tell them apart. Commissions are the sales commission plus the
        supplier commissions.

        Args:
            company: Optional company filter ("all" keeps every company)

        Returns:
            SaleStats with counts per status, totals and the average ticket
        """
        sales = filter_by_company(self.db.list_sales(), company)
        total_revenue = total_of(sales, lambda sale: sale.total_revenue)
        counts = {status: 0 for status in SaleStatus}
        for sale in sales:
            counts[sale.status] += 1
        return SaleStats(
            total=len(sales),
            total_revenue=total_revenue,
            pending=counts[SaleStatus.PENDING],
            confirmed=counts[SaleStatus.CONFIRMED],
            cancelled=counts[SaleStatus.CANCELLED],
            completed=counts[SaleStatus.COMPLETED],
            average_ticket=safe_average(total_revenue, len(sales)),
            total_commissions=total_of(
                sales, lambda sale: sale.sales_commission + sale.total_additional_sales
            ),
            total_margin=total_of(sales, lambda sale: sale.contribution_margin),
        )

    def update_status(self, sale_id: int, status: Union[SaleStatus, str]) -> None:
        """Change the status of a sale.

        Raises:
            NotFoundError: If the sale doesn't exist
            ValidationError: If the status is unknown
        """
        if self.db.get_sale(sale_id) is None:
            raise NotFoundError(sale_not_found(sale_id))
        try:
            status = SaleStatus(status)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        self.db.update_sale(sale_id, {"status": status, "updated_at": self.clock()})
        logger.info("Sale %s status changed to %s", sale_id, status.value)

    def update_notes(self, sale_id: int, notes: Optional[str]) -> None:
        """Update sale notes.

        Raises:
            NotFoundError: If the sale doesn't exist
        """
        if self.db.get_sale(sale_id) is None:
            raise NotFoundError(sale_not_found(sale_id))
        self.db.update_sale(sale_id, {"notes": notes, "updated_at": self.clock()})

    def delete_sale(self, sale_id: int) -> None:
        """Delete a sale.

        Raises:
            NotFoundError: If the sale doesn't exist
        """
        if self.db.get_sale(sale_id) is None:
            raise NotFoundError(sale_not_found(sale_id))
        self.db.delete_sale(sale_id)
        logger.info("Deleted sale %s", sale_id)
