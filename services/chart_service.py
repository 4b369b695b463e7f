"""Static PNG charts for balance trends and monthly totals."""
import io

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.ticker import FuncFormatter

from utils.currency import format_currency

INCOME_COLOR = "#4CAF50"
EXPENSE_COLOR = "#F44336"
BALANCE_COLOR = "#6366f1"


def _short_amount(value, _pos=None) -> str:
    return f"{value/1000:.0f}k" if abs(value) >= 1000 else f"{value:.0f}"


def _to_png(fig: Figure) -> bytes:
    canvas = FigureCanvasAgg(fig)
    buf = io.BytesIO()
    canvas.print_png(buf)
    return buf.getvalue()


def _empty(ax):
    ax.text(0.5, 0.5, "No data", ha="center", va="center",
            transform=ax.transAxes, color="gray")


def render_balance_chart(points: list[dict], title: str = "Balance", symbol: str = "$") -> bytes:
    """Area chart of [{date, balance}] points, as PNG bytes."""
    fig = Figure(figsize=(8, 2.8), dpi=80, tight_layout=True)
    ax = fig.add_subplot(111)
    ax.set_title(title)

    if not points:
        _empty(ax)
        return _to_png(fig)

    x = list(range(len(points)))
    balances = [p["balance"] for p in points]
    ax.plot(x, balances, color=BALANCE_COLOR, linewidth=2)
    ax.fill_between(x, balances, min(0, min(balances)), color=BALANCE_COLOR, alpha=0.2)

    step = max(1, len(points) // 6)
    ax.set_xticks(x[::step])
    ax.set_xticklabels([p["date"][5:] for p in points[::step]])
    ax.yaxis.set_major_formatter(FuncFormatter(lambda v, _: format_currency(v, symbol)))
    ax.grid(axis="y", linestyle="--", alpha=0.4)
    return _to_png(fig)


def render_monthly_chart(data: list[dict], title: str = "Income vs Expense") -> bytes:
    """Grouped income/expense bars for [{month, income, expense}], as PNG bytes."""
    fig = Figure(figsize=(8, 2.8), dpi=80, tight_layout=True)
    ax = fig.add_subplot(111)
    ax.set_title(title)

    if not data:
        _empty(ax)
        return _to_png(fig)

    labels = [d["month"][5:] for d in data]
    incomes = [d.get("income", 0) for d in data]
    expenses = [d.get("expense", 0) for d in data]

    x = list(range(len(labels)))
    w = 0.35
    ax.bar([i - w / 2 for i in x], incomes, w, color=INCOME_COLOR, label="Income")
    ax.bar([i + w / 2 for i in x], expenses, w, color=EXPENSE_COLOR, label="Expense")
    ax.set_xticks(x)
    ax.set_xticklabels(labels, rotation=45 if len(labels) > 12 else 0, ha="right")
    ax.yaxis.set_major_formatter(FuncFormatter(_short_amount))
    ax.legend(loc="upper left", fontsize=8)
    return _to_png(fig)
