"""Filter and grouping helpers over in-memory sale lists.

All functions here are pure: they take a sequence of sales and return a new
list or a bucket mapping without touching the store.
"""

from collections import defaultdict
from datetime import date
from typing import Callable, Iterable, Optional, Sequence, Union

from rentdesk.config import MONTH_LABELS_SHORT, NOT_INFORMED
from rentdesk.domain.entities import (
    CompanyType,
    Dimension,
    PeriodGrouping,
    Sale,
    SaleStatus,
)
from rentdesk.domain.errors import InvalidFilterError, invalid_date_range


def filter_by_period(
    sales: Iterable[Sale],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[Sale]:
    """Keep sales whose check-in falls inside [start_date, end_date].

    Raises:
        InvalidFilterError: If start_date is after end_date
    """
    if start_date is not None and end_date is not None and start_date > end_date:
        raise InvalidFilterError(invalid_date_range(start_date, end_date))

    result = []
    for sale in sales:
        if start_date is not None and sale.check_in_date < start_date:
            continue
        if end_date is not None and sale.check_in_date > end_date:
            continue
        result.append(sale)
    return result


def filter_by_company(
    sales: Iterable[Sale], company: Optional[Union[CompanyType, str]] = None
) -> list[Sale]:
    """Keep sales of one company; None or 'all' keeps everything."""
    if company is None or company == "all":
        return list(sales)
    company = CompanyType(company)
    return [sale for sale in sales if sale.company == company]


def filter_by_house(sales: Iterable[Sale], house_id: Optional[str] = None) -> list[Sale]:
    if not house_id:
        return list(sales)
    return [sale for sale in sales if sale.house_id == house_id]


def filter_by_status(
    sales: Iterable[Sale], status: Optional[Union[SaleStatus, str]] = None
) -> list[Sale]:
    if status is None:
        return list(sales)
    status = SaleStatus(status)
    return [sale for sale in sales if sale.status == status]


def exclude_cancelled(sales: Iterable[Sale]) -> list[Sale]:
    return [sale for sale in sales if sale.status != SaleStatus.CANCELLED]


def period_key(value: date, grouping: PeriodGrouping) -> str:
    """Return a zero-padded, chronologically sortable bucket key for a date."""
    grouping = PeriodGrouping(grouping)
    if grouping == PeriodGrouping.DAY:
        return value.strftime("%Y-%m-%d")
    if grouping == PeriodGrouping.MONTH:
        return value.strftime("%Y-%m")
    if grouping == PeriodGrouping.QUARTER:
        quarter = (value.month - 1) // 3 + 1
        return f"{value.year:04d}-Q{quarter}"
    return f"{value.year:04d}"


def period_start(key: str, grouping: PeriodGrouping) -> date:
    """Return the first date covered by a period key."""
    grouping = PeriodGrouping(grouping)
    if grouping == PeriodGrouping.DAY:
        year, month, day = key.split("-")
        return date(int(year), int(month), int(day))
    if grouping == PeriodGrouping.MONTH:
        year, month = key.split("-")
        return date(int(year), int(month), 1)
    if grouping == PeriodGrouping.QUARTER:
        year, quarter = key.split("-Q")
        return date(int(year), (int(quarter) - 1) * 3 + 1, 1)
    return date(int(key), 1, 1)


def format_period_label(key: str, grouping: PeriodGrouping) -> str:
    """Format a period key for display (DD/MM/YYYY, Mmm/YYYY or the key)."""
    grouping = PeriodGrouping(grouping)
    if grouping == PeriodGrouping.DAY:
        year, month, day = key.split("-")
        return f"{day}/{month}/{year}"
    if grouping == PeriodGrouping.MONTH:
        year, month = key.split("-")
        return f"{MONTH_LABELS_SHORT[int(month) - 1]}/{year}"
    return key


def group_by_key(
    sales: Iterable[Sale], key_func: Callable[[Sale], Optional[str]]
) -> dict[str, list[Sale]]:
    """Partition sales by a key function.

    Sales whose key is missing or blank land in the NOT_INFORMED bucket, so
    the buckets always cover the input exactly once.
    """
    groups: dict[str, list[Sale]] = defaultdict(list)
    for sale in sales:
        key = key_func(sale)
        if key is None or not str(key).strip():
            key = NOT_INFORMED
        groups[key].append(sale)
    return dict(groups)


def group_by_period(
    sales: Iterable[Sale], grouping: PeriodGrouping = PeriodGrouping.MONTH
) -> dict[str, list[Sale]]:
    """Group sales by the period of their check-in date."""
    grouping = PeriodGrouping(grouping)
    return group_by_key(
        sales,
        lambda sale: period_key(sale.check_in_date, grouping)
        if sale.check_in_date is not None
        else None,
    )


def house_city(address: Optional[str]) -> Optional[str]:
    """Extract the city from an address formatted 'street, number - city/state'."""
    if not address or " - " not in address:
        return None
    return address.split(" - ", 1)[1]


def dimension_value(sale: Sale, dimension: Dimension) -> Optional[str]:
    """Return the categorical value of a sale for a demographic dimension."""
    dimension = Dimension(dimension)
    if dimension == Dimension.HOUSE:
        return sale.house_name
    if dimension == Dimension.GENDER:
        return sale.client_gender
    if dimension == Dimension.LOCATION:
        return house_city(sale.house_address)
    return sale.sale_origin.value if sale.sale_origin is not None else None


def group_by_dimension(
    sales: Iterable[Sale], dimension: Dimension
) -> dict[str, list[Sale]]:
    """Group sales by house, gender, location or origin."""
    dimension = Dimension(dimension)
    return group_by_key(sales, lambda sale: dimension_value(sale, dimension))


def sorted_period_keys(groups: dict[str, Sequence[Sale]]) -> list[str]:
    """Return bucket keys in chronological order."""
    return sorted(groups.keys())
