"""Utility functions shared across the GST invoice toolkit."""
from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Optional

from dateutil import parser

GST_RATES = (0, 5, 12, 18, 28)

INDIAN_STATES = (
    "Andhra Pradesh", "Arunachal Pradesh", "Assam", "Bihar", "Chhattisgarh", "Goa", "Gujarat",
    "Haryana", "Himachal Pradesh", "Jharkhand", "Karnataka", "Kerala", "Madhya Pradesh",
    "Maharashtra", "Manipur", "Meghalaya", "Mizoram", "Nagaland", "Odisha", "Punjab",
    "Rajasthan", "Sikkim", "Tamil Nadu", "Telangana", "Tripura", "Uttar Pradesh",
    "Uttarakhand", "West Bengal", "Andaman and Nicobar Islands", "Chandigarh",
    "Dadra and Nagar Haveli and Daman and Diu", "Delhi", "Jammu and Kashmir", "Ladakh",
    "Lakshadweep", "Puducherry",
)

PAISE = Decimal("0.01")
RUPEE = Decimal("1")

_ONES = (
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine", "Ten",
    "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen", "Seventeen",
    "Eighteen", "Nineteen",
)
_TENS = ("", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety")


def parse_date(value: str) -> Optional[date]:
    """Parse a date string into a date object; returns None on failure."""
    if not value:
        return None
    try:
        return parser.parse(value, dayfirst=False, yearfirst=True).date()
    except (ValueError, TypeError, OverflowError):
        try:
            return parser.parse(value, dayfirst=True, yearfirst=True).date()
        except (ValueError, TypeError, OverflowError):
            return None


def to_decimal(value: object) -> Decimal:
    """Convert numbers and numeric strings to Decimal without float drift."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return Decimal(int(value))
    return Decimal(str(value).strip())


def safe_decimal(value: object) -> Optional[Decimal]:
    """Convert to Decimal if possible, else None."""
    if value is None:
        return None
    try:
        return to_decimal(value)
    except (InvalidOperation, ValueError):
        return None


def round_half_up(value: Decimal, exp: Decimal = RUPEE) -> Decimal:
    """Round halves away from zero to the precision of ``exp``.

    Precision grows with the magnitude of ``value`` so very large amounts
    round instead of raising ``InvalidOperation``.
    """
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() - exp.as_tuple().exponent + 2)
        return value.quantize(exp, rounding=ROUND_HALF_UP)


def normalize_state(value: Optional[str]) -> str:
    """Case-folded, trimmed state name used for jurisdiction comparison."""
    return (value or "").strip().lower()


def is_known_state(value: Optional[str]) -> bool:
    return normalize_state(value) in {s.lower() for s in INDIAN_STATES}


def format_amount(amount: Decimal) -> str:
    """Format money with two decimals and Indian digit grouping (12,34,567.89)."""
    rounded = round_half_up(to_decimal(amount), PAISE)
    sign = "-" if rounded < 0 else ""
    whole, fraction = f"{abs(rounded):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}{whole}.{fraction}"


def _words_below_thousand(n: int) -> str:
    if n == 0:
        return ""
    if n < 20:
        return _ONES[n]
    if n < 100:
        return _TENS[n // 10] + (" " + _ONES[n % 10] if n % 10 else "")
    rest = n % 100
    return _ONES[n // 100] + " Hundred" + (" " + _words_below_thousand(rest) if rest else "")


def _words_indian(n: int) -> str:
    if n == 0:
        return ""
    parts = []
    crore, n = divmod(n, 10_000_000)
    lakh, n = divmod(n, 100_000)
    thousand, hundred = divmod(n, 1000)
    if crore:
        parts.append(_words_indian(crore) + " Crore")
    if lakh:
        parts.append(_words_below_thousand(lakh) + " Lakh")
    if thousand:
        parts.append(_words_below_thousand(thousand) + " Thousand")
    if hundred:
        parts.append(_words_below_thousand(hundred))
    return " ".join(parts)


def amount_in_words(amount: Decimal) -> str:
    """Spell an amount in Indian numbering, e.g. 'One Lakh Rupees and Five Paise Only'."""
    rounded = round_half_up(abs(to_decimal(amount)), PAISE)
    whole = int(rounded)
    fraction = int((rounded - whole) * 100)
    if whole == 0 and fraction == 0:
        return "Zero Rupees Only"

    parts = []
    if whole:
        parts.append(_words_indian(whole) + " Rupees")
    if fraction:
        parts.append(_words_below_thousand(fraction) + " Paise")
    return " and ".join(parts) + " Only"
