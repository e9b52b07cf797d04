"""Centralized configuration - business constants and mappings live here."""

from decimal import Decimal

# Environment variable holding the SQLite database path
DB_PATH_ENVVAR = "RENTDESK_DB_PATH"

# Default database location (relative to the user's home directory)
DEFAULT_DB_DIR = ".rentdesk"
DEFAULT_DB_FILENAME = "rentdesk.db"

# Tax rate per company, in percent (Simples Nacional)
TAX_RATES = {
    "exclusive": Decimal("6.0"),
    "giogio": Decimal("6.0"),
    "direta": Decimal("6.0"),
}

# Display name per company
COMPANY_NAMES = {
    "exclusive": "Exclusive Imóveis",
    "giogio": "Gio Gio Temporadas",
    "direta": "Venda Direta",
}

# Sales commission as a fraction of the net value
SALES_COMMISSION_RATE = Decimal("0.10")

# Goal status thresholds (achieved / goal)
GOAL_EXCEEDED_RATIO = 1.0
GOAL_ON_TRACK_RATIO = 0.7

# Catch-all bucket for records missing a grouping field
NOT_INFORMED = "Não informado"

# Days ahead of check-in that a missing concierge process triggers a reminder
CONCIERGE_REMINDER_DAYS = 10

# Days covered by the process completion chart
PROCESS_CHART_DAYS = 30

# Prefix for generated sale codes (VND-000001)
SALE_CODE_PREFIX = "VND"

MONTH_LABELS = [
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
]

MONTH_LABELS_SHORT = [
    "Jan",
    "Fev",
    "Mar",
    "Abr",
    "Mai",
    "Jun",
    "Jul",
    "Ago",
    "Set",
    "Out",
    "Nov",
    "Dez",
]

# Display label per goal category
GOAL_CATEGORY_LABELS = {
    "rental_sales": "Vendas de Locações",
    "contracts_quantity": "Quantidade de Contratos",
    "supplier_commission": "Comissão Fornecedores",
    "concierge": "Concierge",
    "house_sales": "Vendas de Casas",
}
