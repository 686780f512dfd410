"""
Value normalization for cross-document comparison.

Each helper turns a raw extracted string into a comparable form. Helpers
never raise on odd input; anything unparseable falls back to a folded
string.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

MISSING_MARKERS = {"", "n/a", "na", "none", "null", "-", "not specified", "not available"}

LEGAL_SUFFIXES = {
    "pvt", "private", "ltd", "limited", "llc", "llp", "inc", "incorporated",
    "corp", "corporation", "co", "company", "gmbh", "plc", "pty", "sa", "ag", "bv",
}

# UN/LOCODE -> names seen on trade documents
PORT_ALIASES: dict[str, tuple[str, ...]] = {
    "INBOM": ("mumbai", "bombay"),
    "INNSA": ("nhava sheva", "jnpt", "jawaharlal nehru"),
    "INMAA": ("chennai", "madras"),
    "INMUN": ("mundra",),
    "INCCU": ("kolkata", "calcutta"),
    "INBLR": ("bangalore", "bengaluru"),
    "INDEL": ("delhi", "new delhi"),
    "USNYC": ("new york", "new york city"),
    "USLAX": ("los angeles",),
    "AEJEA": ("jebel ali",),
    "AEDXB": ("dubai",),
    "SGSIN": ("singapore",),
    "CNSHA": ("shanghai",),
    "HKHKG": ("hong kong",),
    "NLRTM": ("rotterdam",),
    "DEHAM": ("hamburg",),
    "GBFXT": ("felixstowe",),
    "GBLON": ("london",),
}

# City names that filings also declare under another port's code. Only used
# when one side gives a code and the other a name.
DECLARED_PORT_CODES: dict[str, tuple[str, ...]] = {
    "mumbai": ("INNSA", "INMAA"),
}

COUNTRY_ALIASES: dict[str, tuple[str, ...]] = {
    "IN": ("india", "ind", "bharat"),
    "US": ("united states", "usa", "united states of america", "america"),
    "GB": ("united kingdom", "uk", "great britain", "england"),
    "AE": ("united arab emirates", "uae"),
    "CN": ("china", "prc", "people's republic of china"),
    "DE": ("germany", "deu"),
    "SG": ("singapore", "sgp"),
    "NL": ("netherlands", "holland", "nld"),
    "JP": ("japan", "jpn"),
    "BD": ("bangladesh", "bgd"),
}

CURRENCY_SYMBOLS = {"$": "USD", "€": "EUR", "£": "GBP", "₹": "INR", "¥": "JPY"}
SYMBOL_FOR_CURRENCY = {"USD": "$", "EUR": "€", "GBP": "£", "INR": "₹"}
_RUPEE_PREFIX = re.compile(r"^\s*(rs\.?|inr)\s*", re.IGNORECASE)

DATE_FORMATS = (
    "%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y", "%d/%m/%y", "%d-%m-%y",
    "%Y-%m-%d", "%Y/%m/%d",
    "%d %b %Y", "%d %B %Y", "%d-%b-%Y", "%d-%b-%y",
    "%b %d, %Y", "%B %d, %Y",
)

_NUMBER = re.compile(r"[-+]?\d[\d,]*(?:\.\d+)?")
_CURRENCY_CODE = re.compile(r"\b([A-Z]{3})\b")
ISO_CURRENCIES = {
    "USD", "EUR", "GBP", "INR", "JPY", "AED", "CNY", "SGD", "HKD", "AUD",
    "CAD", "CHF", "SAR", "BDT", "LKR", "NZD", "ZAR", "THB", "MYR", "KRW",
}
_HS_SHAPE = re.compile(r"^[\d.\s]+$")


def is_missing(value) -> bool:
    return value is None or str(value).strip().lower() in MISSING_MARKERS


def fold(value: str) -> str:
    """Case-fold and collapse whitespace"""
    return " ".join(str(value).split()).casefold()


def normalize_identifier(value: str) -> str:
    return re.sub(r"[^0-9A-Za-z]", "", str(value)).upper()


def normalize_company(value: str) -> str:
    """Company name without punctuation or trailing legal suffixes"""
    words = re.sub(r"[.,()&/]", " ", fold(value)).split()
    while len(words) > 1 and words[-1] in LEGAL_SUFFIXES:
        words.pop()
    return " ".join(words)


def _strip_port_prefix(name: str) -> str:
    name = fold(name)
    for prefix in ("port of ", "port "):
        if name.startswith(prefix):
            return name[len(prefix):]
    return name


def port_code(value: str) -> str | None:
    """The UN/LOCODE when the value is written as a known code"""
    raw = str(value).strip().upper().replace(" ", "")
    return raw if raw in PORT_ALIASES else None


def port_codes(value: str) -> set[str]:
    """UN/LOCODEs a port code or name stands for (empty if unknown)"""
    code = port_code(value)
    if code:
        return {code}
    name = _strip_port_prefix(value)
    return {code for code, names in PORT_ALIASES.items() if name in names}


def declared_port_codes(value: str) -> set[str]:
    """Codes a port name may be declared under on customs filings"""
    return port_codes(value) | set(DECLARED_PORT_CODES.get(_strip_port_prefix(value), ()))


def ports_match(a: str, b: str) -> bool:
    """
    Two codes match when equal, a code and a name when the name may be
    declared under that code, two names when they name the same port.
    """
    code_a, code_b = port_code(a), port_code(b)
    if code_a and code_b:
        return code_a == code_b
    if code_a:
        return code_a in declared_port_codes(b)
    if code_b:
        return code_b in declared_port_codes(a)
    return bool(port_codes(a) & port_codes(b))


def normalize_country(value: str) -> str:
    raw = fold(value)
    if raw.upper() in COUNTRY_ALIASES:
        return raw.upper()
    for code, names in COUNTRY_ALIASES.items():
        if raw in names:
            return code
    return raw


def normalize_currency(value: str) -> str:
    raw = str(value).strip()
    if raw in CURRENCY_SYMBOLS:
        return CURRENCY_SYMBOLS[raw]
    if raw.lower().rstrip(".") == "rs":
        return "INR"
    return raw.upper()


def parse_amount(value: str) -> tuple[str | None, Decimal] | None:
    """
    Split "USD 25,487.50" / "$25,487.50" / "Rs. 1,000" into (currency, amount).

    Returns None when no number can be found.
    """
    text = str(value)
    match = _NUMBER.search(text)
    if not match:
        return None
    try:
        amount = Decimal(match.group(0).replace(",", ""))
    except InvalidOperation:
        return None

    currency = None
    for symbol, code in CURRENCY_SYMBOLS.items():
        if symbol in text:
            currency = code
            break
    if currency is None and _RUPEE_PREFIX.match(text):
        currency = "INR"
    if currency is None:
        # Skip incoterms and other three-letter words (CIF USD 100.00)
        currency = next((c for c in _CURRENCY_CODE.findall(text.upper()) if c in ISO_CURRENCIES), None)
    return currency, amount


def format_variance(difference: Decimal, currency: str | None) -> str:
    """Signed difference with currency marker, e.g. +$12.50 or -AED 4.00"""
    sign = "+" if difference >= 0 else "-"
    magnitude = f"{abs(difference):,.2f}"
    if currency in SYMBOL_FOR_CURRENCY:
        return f"{sign}{SYMBOL_FOR_CURRENCY[currency]}{magnitude}"
    if currency:
        return f"{sign}{currency} {magnitude}"
    return f"{sign}{magnitude}"


def parse_date(value: str) -> date | None:
    text = " ".join(str(value).split())
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def hs_digits(value: str) -> str:
    return re.sub(r"\D", "", str(value))


def is_valid_hs_code(value: str) -> bool:
    """HS codes are 6-10 digits, optionally dotted (6109.10.00)"""
    raw = str(value).strip()
    return bool(_HS_SHAPE.match(raw)) and 6 <= len(hs_digits(raw)) <= 10


def rounded_percentage(part: int, total: int) -> int:
    """100 * part / total rounded half-up; 0 when total is 0"""
    if total <= 0:
        return 0
    ratio = Decimal(100 * part) / Decimal(total)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
