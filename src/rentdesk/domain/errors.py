"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class InvalidFilterError(ValidationError):
    """A report or query filter is malformed (e.g. start after end)."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class NoDataError(DomainError):
    """There is nothing to report or export for the requested scope."""


class DataSourceError(DomainError):
    """The underlying document store failed to answer a read or write."""


class StaleResultError(DomainError):
    """A concurrent load finished after a newer request superseded it."""


def sale_not_found(sale_id: int) -> str:
    """Return message for missing sale."""
    return f"Sale {sale_id} not found"


def process_not_found(process_id: int) -> str:
    """Return message for missing concierge process."""
    return f"Concierge process {process_id} not found"


def notification_not_found(notification_id: int) -> str:
    """Return message for missing notification."""
    return f"Notification {notification_id} not found"


def invalid_date_range(start, end) -> str:
    """Return message for a date range whose start falls after its end."""
    return f"Start date {start} is after end date {end}"


def nothing_to_export(report: str) -> str:
    """Return message when an export has no rows."""
    return f"No data available to export for '{report}'"


def data_source_failure(operation: str) -> str:
    """Return message for a failed read or write against the store."""
    return f"Failed to {operation}: data source unavailable"
