"""Domain layer for rentdesk application."""

__all__ = [
    "SaleService",
    "FinancialService",
    "ConsolidationService",
    "GoalsService",
    "ProcessService",
    "ExcelExportService",
    "DashboardLoader",
]

_SERVICES = {
    "SaleService": "rentdesk.domain.sale",
    "FinancialService": "rentdesk.domain.financial",
    "ConsolidationService": "rentdesk.domain.consolidation",
    "GoalsService": "rentdesk.domain.goals",
    "ProcessService": "rentdesk.domain.process",
    "ExcelExportService": "rentdesk.domain.export",
    "DashboardLoader": "rentdesk.domain.loader",
}


# Services import the database layer, which imports domain.entities;
# resolve them lazily so importing rentdesk.domain stays cycle-free
def __getattr__(name):
    if name in _SERVICES:
        import importlib

        module = importlib.import_module(_SERVICES[name])
        return getattr(module, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
