APP_NAME = "New Budget"
DB_FILE = "budget.db"

DEFAULT_ACCOUNT_ID = "default"
DEFAULT_ACCOUNT_NAME = "Checking"
DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"
DEFAULT_RESET_DAY = 1
FORECAST_MONTHS = 6
EXPORT_VERSION = "1.0"

TRANSACTION_KINDS = ("income", "expense")
FREQUENCIES = ("daily", "weekly", "monthly", "yearly")
ACCOUNT_KINDS = ("checking", "savings", "cash", "credit")

DEFAULT_GOAL_COLOR = "#10b981"

NOTIFICATION_KINDS = ("saved", "error", "info")

CATEGORY_KINDS = ("income", "expense", "both")
DEFAULT_CATEGORY_COLOR = "#888888"
DEFAULT_CATEGORIES = [
    {"id": "1", "name": "Salary",        "kind": "income",  "color": "#10b981"},
    {"id": "2", "name": "Housing",       "kind": "expense", "color": "#ef4444"},
    {"id": "3", "name": "Food",          "kind": "expense", "color": "#f59e0b"},
    {"id": "4", "name": "Transport",     "kind": "expense", "color": "#3b82f6"},
    {"id": "5", "name": "Entertainment", "kind": "expense", "color": "#8b5cf6"},
    {"id": "6", "name": "Other",         "kind": "both",    "color": "#888888"},
]
