"""
Value formatters.

Deterministic value -> display string conversions used when filling
documents: numbers as Korean or English words, grouped numbers, currency,
dates, phone numbers and text case.

Formatters know nothing about surveys. They never raise: invalid or
empty input yields an empty string or the input echoed back.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from surveydoc.model import DataType

Number = Union[int, float]

_NUMBER_PREFIX_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")
_NON_DIGIT_RE = re.compile(r"[^0-9]")
_INTEGER_RE = re.compile(r"^-?\d+$")


# =============================================================================
# NUMBER PARSING
# =============================================================================


def parse_number(value: Any) -> Optional[float]:
    """
    Parse the leading numeric part of a value.

    "12" -> 12.0, " 3.5kg" -> 3.5, "abc" -> None, 7 -> 7.0

    Returns:
        float, or None when no number can be read
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return None if number != number else number
    match = _NUMBER_PREFIX_RE.match(str(value).strip())
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def _clean_number(value: Any) -> Optional[float]:
    """Parse a number after dropping currency symbols and separators."""
    if isinstance(value, str):
        return parse_number(_NON_NUMERIC_RE.sub("", value))
    return parse_number(value)


def _exact_integer(value: Any) -> Optional[int]:
    """Integer read without a float round-trip, for digit-only input."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        cleaned = _NON_NUMERIC_RE.sub("", value)
        if _INTEGER_RE.match(cleaned):
            return int(cleaned)
    return None


def _to_integer(value: Any) -> Optional[int]:
    exact = _exact_integer(value)
    if exact is not None:
        return exact
    number = _clean_number(value)
    if number is None or number in (float("inf"), float("-inf")):
        return None
    return int(number)


def number_to_string(value: Number) -> str:
    """
    Shortest string for a number; integral values have no decimal point.

    50.0 -> "50", 0.5 -> "0.5", 1/3 -> "0.3333333333333333"
    """
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def _decimal_places(value: float) -> int:
    if value.is_integer():
        return 0
    try:
        exponent = Decimal(repr(value)).as_tuple().exponent
    except InvalidOperation:
        return 0
    return max(0, -exponent) if isinstance(exponent, int) else 0


def format_number_with_comma(value: Any) -> str:
    """
    Group thousands with commas, keeping the original decimal places.

    10000000 -> "10,000,000"
    1234.5 -> "1,234.5"
    0.0001 -> "0.0001"

    Unparseable input renders as "0".
    """
    exact = _exact_integer(value)
    if exact is not None:
        return f"{exact:,}"
    number = _clean_number(value)
    if number is None or number in (float("inf"), float("-inf")):
        return "0"
    return f"{number:,.{_decimal_places(number)}f}"


def format_dollar_cents(value: Any) -> str:
    """'$' plus the amount grouped with exactly two decimals."""
    number = _clean_number(value)
    if number is None:
        return str(value or "")
    return f"${number:,.2f}"


# =============================================================================
# KOREAN NUMERALS
# =============================================================================

KOREAN_NUMBERS = ["", "일", "이", "삼", "사", "오", "육", "칠", "팔", "구"]
KOREAN_UNITS = ["", "십", "백", "천"]
KOREAN_BIG_UNITS = ["", "만", "억", "조", "경"]


def _split_chunks(number: int, width: int):
    """Split digits into fixed-width groups, most significant first."""
    digits = str(number)
    chunks = []
    while digits:
        chunks.insert(0, int(digits[-width:]))
        digits = digits[:-width]
    return chunks


def _korean_chunk(chunk: int) -> str:
    result = ""
    digits = str(chunk).zfill(4)
    for position, char in enumerate(digits):
        digit = int(char)
        if digit == 0:
            continue
        unit_index = 3 - position
        # 일십 -> 십, 일백 -> 백, 일천 -> 천
        if digit == 1 and unit_index > 0:
            result += KOREAN_UNITS[unit_index]
        else:
            result += KOREAN_NUMBERS[digit] + KOREAN_UNITS[unit_index]
    return result


def number_to_korean(value: Any) -> str:
    """
    Convert an integer to native Korean numeral words.

    10000 -> "만", 10000000 -> "천만", 12345 -> "만이천삼백사십오"

    Zero and unparseable input give "영", negatives get "마이너스 ".
    Values beyond the 경 unit are returned as plain digits.
    """
    number = _to_integer(value)
    if number is None or number == 0:
        return "영"
    if number < 0:
        return "마이너스 " + number_to_korean(-number)
    if number >= 10 ** (4 * len(KOREAN_BIG_UNITS)):
        return str(number)

    chunks = _split_chunks(number, 4)
    result = ""
    for index, chunk in enumerate(chunks):
        if chunk == 0:
            continue
        big_unit_index = len(chunks) - 1 - index
        big_unit = KOREAN_BIG_UNITS[big_unit_index]
        # 일만 -> 만
        if chunk == 1 and big_unit_index > 0:
            result += big_unit
        else:
            result += _korean_chunk(chunk) + big_unit
    return result or "영"


def number_to_korean_currency(value: Any) -> str:
    """Korean numeral words followed by 원 (10000000 -> "천만원")."""
    return number_to_korean(value) + "원"


# =============================================================================
# ENGLISH NUMERALS
# =============================================================================

ONES = [
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
    "Seventeen", "Eighteen", "Nineteen",
]
TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]
SCALES = ["", "Thousand", "Million", "Billion", "Trillion"]

ORDINAL_ONES = [
    "", "First", "Second", "Third", "Fourth", "Fifth", "Sixth", "Seventh",
    "Eighth", "Ninth", "Tenth", "Eleventh", "Twelfth", "Thirteenth",
    "Fourteenth", "Fifteenth", "Sixteenth", "Seventeenth", "Eighteenth",
    "Nineteenth",
]
ORDINAL_TENS = [
    "", "", "Twentieth", "Thirtieth", "Fortieth", "Fiftieth", "Sixtieth",
    "Seventieth", "Eightieth", "Ninetieth",
]


def _english_chunk(chunk: int) -> str:
    words = []
    hundreds = chunk // 100
    if hundreds > 0:
        words.append(ONES[hundreds] + " Hundred")
    remainder = chunk % 100
    if remainder > 0:
        if remainder < 20:
            words.append(ONES[remainder])
        else:
            tens, ones = divmod(remainder, 10)
            words.append(TENS[tens] + (" " + ONES[ones] if ones else ""))
    return " ".join(words)


def number_to_english(value: Any) -> str:
    """
    Convert an integer to English words.

    1000000 -> "One Million"
    12345 -> "Twelve Thousand Three Hundred Forty Five"
    """
    number = _to_integer(value)
    if number is None:
        return ""
    if number == 0:
        return "Zero"
    if number < 0:
        return "Negative " + number_to_english(-number)

    chunks = _split_chunks(number, 3)
    words = []
    for index, chunk in enumerate(chunks):
        if chunk == 0:
            continue
        scale_index = len(chunks) - 1 - index
        words.append(_english_chunk(chunk))
        if scale_index < len(SCALES) and SCALES[scale_index]:
            words.append(SCALES[scale_index])
    return " ".join(words) or "Zero"


def number_to_english_currency(value: Any) -> str:
    """English words followed by Dollar (exactly 1) or Dollars."""
    number = _to_integer(value)
    if number is None:
        return ""
    if number == 1:
        return "One Dollar"
    return number_to_english(number) + " Dollars"


def number_to_ordinal(value: Any) -> str:
    """
    English ordinal words.

    Exact for 1-99 (21 -> "Twenty First"). From 100 upwards this is an
    approximation: 100 -> "One Hundredth", 101 -> "One Hundred First".
    """
    number = _to_integer(value)
    if number is None or number < 1:
        return ""
    if number < 20:
        return ORDINAL_ONES[number]
    if number < 100:
        tens, ones = divmod(number, 10)
        if ones == 0:
            return ORDINAL_TENS[tens]
        return TENS[tens] + " " + ORDINAL_ONES[ones]
    if number % 100 == 0:
        return number_to_english(number // 100) + " Hundredth"
    return number_to_english(number // 100) + " Hundred " + number_to_ordinal(number % 100)


# =============================================================================
# DATES
# =============================================================================

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
MONTH_NAMES_SHORT = [name[:3] for name in MONTH_NAMES]

_ISO_DATE_RE = re.compile(r"^(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})")
_TEXT_DATE_FORMATS = ("%B %d, %Y", "%b %d, %Y", "%m/%d/%Y")
_DATE_TOKEN_RE = re.compile(r"YYYY|MMMM|MMM|MM|M|DD|D")


def parse_date(value: Any) -> Optional[date]:
    """
    Read a calendar date from a date, datetime or date string.

    ISO strings ("2026-01-31", "2026-01-31T09:00:00Z") keep the date as
    written; no timezone conversion is applied.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    match = _ISO_DATE_RE.match(text)
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            return None
    for pattern in _TEXT_DATE_FORMATS:
        try:
            return datetime.strptime(text, pattern).date()
        except ValueError:
            continue
    return None


def format_date(value: Any, fmt: str = "YYYY-MM-DD") -> str:
    """
    Render a date in one of the supported formats.

    Named formats:
        'YYYY-MM-DD'       -> 2026-01-31
        'YYYY년 MM월 DD일'  -> 2026년 01월 31일
        'MM/DD/YYYY'       -> 01/31/2026
        'MMMM D, YYYY'     -> January 31, 2026
        'MMM D, YYYY'      -> Jan 31, 2026
        'YYYY.MM.DD'       -> 2026.01.31
        'DD/MM/YYYY'       -> 31/01/2026

    Any other pattern is rendered token by token (YYYY, MMMM, MMM, MM, M,
    DD, D). Unparseable input is returned unchanged.
    """
    if not value:
        return ""
    parsed = parse_date(value)
    if parsed is None:
        return str(value)

    year, month, day = parsed.year, parsed.month, parsed.day
    if fmt == "YYYY-MM-DD":
        return f"{year}-{month:02d}-{day:02d}"
    if fmt == "YYYY년 MM월 DD일":
        return f"{year}년 {month:02d}월 {day:02d}일"
    if fmt == "MM/DD/YYYY":
        return f"{month:02d}/{day:02d}/{year}"
    if fmt == "MMMM D, YYYY":
        return f"{MONTH_NAMES[month - 1]} {day}, {year}"
    if fmt == "MMM D, YYYY":
        return f"{MONTH_NAMES_SHORT[month - 1]} {day}, {year}"
    if fmt == "YYYY.MM.DD":
        return f"{year}.{month:02d}.{day:02d}"
    if fmt == "DD/MM/YYYY":
        return f"{day:02d}/{month:02d}/{year}"

    tokens = {
        "YYYY": str(year),
        "MMMM": MONTH_NAMES[month - 1],
        "MMM": MONTH_NAMES_SHORT[month - 1],
        "MM": f"{month:02d}",
        "M": str(month),
        "DD": f"{day:02d}",
        "D": str(day),
    }
    return _DATE_TOKEN_RE.sub(lambda m: tokens[m.group(0)], fmt)


def format_time(moment: datetime, fmt: str = "HH:mm") -> str:
    """Render a time as 'HH:mm', 'HH:mm:ss' or 'h:mm A'."""
    if fmt == "HH:mm:ss":
        return f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    if fmt == "h:mm A":
        hour = moment.hour % 12 or 12
        meridiem = "AM" if moment.hour < 12 else "PM"
        return f"{hour}:{moment.minute:02d} {meridiem}"
    return f"{moment.hour:02d}:{moment.minute:02d}"


# =============================================================================
# PHONE AND TEXT
# =============================================================================


def format_phone(phone: Optional[str], style: str = "dashed") -> str:
    """
    Normalize a phone number.

    '01012345678' -> '010-1234-5678'
    '0212345678'  -> '02-1234-5678'
    '021234567'   -> '02-123-4567'

    Styles: 'dashed', 'dotted', 'none' (digits only).
    Fewer than 9 digits: returned unchanged.
    """
    if not phone:
        return ""
    digits = _NON_DIGIT_RE.sub("", phone)
    if len(digits) < 9:
        return phone

    if digits.startswith("02"):
        if len(digits) == 9:
            formatted = f"{digits[:2]}-{digits[2:5]}-{digits[5:]}"
        else:
            formatted = f"{digits[:2]}-{digits[2:6]}-{digits[6:]}"
    elif len(digits) == 10:
        formatted = f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"
    elif len(digits) == 11:
        formatted = f"{digits[:3]}-{digits[3:7]}-{digits[7:]}"
    else:
        formatted = phone

    if style == "dotted":
        return formatted.replace("-", ".")
    if style == "none":
        return digits
    return formatted


def transform_text(text: Optional[str], rule: str) -> str:
    """
    Apply a case rule: uppercase, lowercase, capitalize, title, trim, none.

    capitalize upper-cases the first character only (rest lower-cased);
    title upper-cases the first character of every word.
    """
    if not text:
        return ""
    if rule == "uppercase":
        return text.upper()
    if rule == "lowercase":
        return text.lower()
    if rule == "capitalize":
        return text[0].upper() + text[1:].lower()
    if rule == "title":
        return re.sub(r"\b\w", lambda m: m.group(0).upper(), text)
    if rule == "trim":
        return text.strip()
    return text


# =============================================================================
# DISPATCH
# =============================================================================


def _data_type_name(data_type: Union[DataType, str]) -> str:
    return data_type.value if isinstance(data_type, DataType) else str(data_type or "")


def apply_transform_rule(value: Optional[str], data_type: Union[DataType, str], rule: Optional[str]) -> str:
    """
    Render a scalar value according to its data type and transform rule.

    Args:
        value: Raw string value
        data_type: DataType (or its string value)
        rule: Transform rule, meaning depends on data_type

    Returns:
        Display string ("" for empty input)
    """
    if not value:
        return ""
    kind = _data_type_name(data_type)

    if kind == DataType.NUMBER.value:
        if rule == "comma":
            return format_number_with_comma(value)
        if rule == "number_english":
            return number_to_english(value)
        if rule == "ordinal_english":
            return number_to_ordinal(value)
        return value

    if kind == DataType.CURRENCY.value:
        if rule == "comma_dollar_cents":
            return format_dollar_cents(value)
        if rule == "number_english":
            return number_to_english_currency(value)
        if rule == "number_korean":
            return number_to_korean_currency(value)
        if rule == "comma_won":
            return format_number_with_comma(value) + "원"
        return "$" + format_number_with_comma(value)

    if kind == DataType.DATE.value:
        return format_date(value, rule if rule and rule != "none" else "YYYY-MM-DD")

    if kind == DataType.PHONE.value:
        return format_phone(value, rule or "dashed")

    if kind == DataType.EMAIL.value:
        return value.strip().lower()

    return transform_text(value, rule or "none")
