"""
Receipt Rendering

Builds the fixed-width text receipt printed after a cashier confirms
payment. Layout lives in ``templates/receipt.txt`` (Jinja2); this module
prepares the values and the column helpers.

Example (32 columns):

            Warung Nusantara
               Jl. Merdeka 1
    --------------------------------
    Nasi Goreng x2         Rp 50.000
    --------------------------------
    TOTAL                  Rp 50.000

Version: 1.0.0
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader

from qr_ordering.core.clock import as_utc, utcnow
from qr_ordering.core.config import Settings, get_settings
from qr_ordering.models import Order

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
RECEIPT_TEMPLATE = "receipt.txt"


def format_money(amount: float, prefix: Optional[str] = None) -> str:
    """Indonesian style thousands separators: 25000 -> 'Rp 25.000'."""
    if prefix is None:
        prefix = get_settings().currency_prefix
    value = int(round(amount or 0))
    formatted = f"{abs(value):,}".replace(",", ".")
    sign = "-" if value < 0 else ""
    return f"{sign}{prefix} {formatted}"


def make_columns(width: int):
    """Return a helper laying out ``left`` and ``right`` on one line."""
    def columns(left, right) -> str:
        left = str(left if left is not None else "")
        right = str(right if right is not None else "")
        room = width - len(right) - 1
        if room < 1:
            return f"{left}\n{right.rjust(width)}"
        if len(left) > room:
            left = left[: room - 1] + "~" if room > 1 else left[:room]
        return f"{left.ljust(room)} {right}"
    return columns


def _build_environment(width: int, prefix: str) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        autoescape=False,
    )
    env.filters["money"] = lambda amount: format_money(amount, prefix)
    env.filters["rstrip"] = lambda value: str(value).rstrip()
    env.globals["columns"] = make_columns(width)
    return env


def render_receipt(
    order: Order,
    cashier_name: str,
    settings: Optional[Settings] = None,
    printed_at: Optional[datetime] = None,
) -> str:
    settings = settings or get_settings()
    width = settings.receipt_width
    env = _build_environment(width, settings.currency_prefix)

    when = as_utc(printed_at or order.completed_at or order.created_at) or utcnow()
    restaurant = order.restaurant

    lines = [
        {
            "label": f"{item.name_snapshot} x{item.quantity}",
            "subtotal": item.subtotal,
        }
        for item in order.items
    ]

    return env.get_template(RECEIPT_TEMPLATE).render(
        width=width,
        rule="-" * width,
        restaurant_name=restaurant.name if restaurant else settings.app_name,
        location=restaurant.location if restaurant else None,
        order_id=order.id,
        table_number=order.table_number,
        cashier_name=cashier_name,
        date=when.strftime("%Y-%m-%d %H:%M UTC"),
        lines=lines,
        total=order.total,
        footer=settings.receipt_footer,
    )
