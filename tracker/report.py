# tracker/report.py
import datetime
import os
from decimal import Decimal, ROUND_HALF_UP, localcontext
from pathlib import Path

import pytz
from jinja2 import Environment, FileSystemLoader

from .logger import get_logger
from .models import TaxReport

logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    trim_blocks=True,
    lstrip_blocks=True,
)

CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "$")
REPORT_DIR = os.getenv("REPORT_DIR", "./reports")

_CENT = Decimal("0.01")


def format_currency(amount) -> str:
    """
    Render an amount as "$1,234.50" / "-$5.00".

    Rounds to the cent half-up (ties away from zero) on the decimal text of
    the number, so 19.995 -> "$20.00" and -19.995 -> "-$20.00". None reads
    as zero; NaN and infinities render as "Unavailable".
    """
    if amount is None:
        amount = 0
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    if not value.is_finite():
        return "Unavailable"

    # Enough digits for every integer place plus the cents
    with localcontext() as ctx:
        ctx.prec = max(28, value.adjusted() + 3)
        cents = value.quantize(_CENT, rounding=ROUND_HALF_UP)
        sign = "-" if cents < 0 else ""
        return f"{sign}{CURRENCY_SYMBOL}{abs(cents):,.2f}"


def _as_utc(moment: datetime.datetime | None) -> datetime.datetime:
    if moment is None:
        return datetime.datetime.now(tz=pytz.UTC)
    if moment.tzinfo is None:
        return pytz.UTC.localize(moment)
    return moment.astimezone(pytz.UTC)


def report_filename(generated_at: datetime.datetime | None = None) -> str:
    millis = int(_as_utc(generated_at).timestamp() * 1000)
    return f"tax-report-{millis}.txt"


def build_report_text(
    report: TaxReport,
    generated_at: datetime.datetime | None = None,
) -> str:
    generated_at = _as_utc(generated_at)
    template = env.get_template("tax_report.txt")

    categories = [
        {"name": name, "amount": format_currency(amount)}
        for name, amount in report.expenses_by_category.items()
    ]

    ctx = {
        "report_date": generated_at.strftime("%Y-%m-%d"),
        "generated_at": generated_at.isoformat(),
        "gross_receipts": format_currency(report.gross_receipts),
        "cogs": format_currency(report.cogs),
        "taxable_income": format_currency(report.taxable_income),
        "platform_fees": format_currency(report.platform_fees),
        "shipping_costs": format_currency(report.shipping_costs),
        "categories": categories,
        "total_expenses": format_currency(report.total_expenses),
        "net_profit": format_currency(report.net_profit),
    }

    return template.render(**ctx)


def download_report(
    report: TaxReport,
    directory: str | os.PathLike | None = None,
    generated_at: datetime.datetime | None = None,
) -> Path:
    """
    Write the plain-text tax report to `directory` as
    tax-report-<epoch-millis>.txt and return its path.
    """
    generated_at = _as_utc(generated_at)
    out_dir = Path(directory if directory is not None else REPORT_DIR)
    out_dir.mkdir(parents=True, exist_ok=True)

    path = out_dir / report_filename(generated_at)
    path.write_text(build_report_text(report, generated_at), encoding="utf-8")
    logger.info("Tax report written to %s", path)
    return path
