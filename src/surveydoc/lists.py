"""
List formatting helpers.

Natural-language joins for multi-value answers, and the bundle of helper
variables templates use to talk about a list ("A, B, and C", counts,
first/last, per-index items, loop records).
"""

from typing import Any, Dict, List, Sequence


def capitalize_first(name: str) -> str:
    """Upper-case the first character only ("founders" -> "Founders")."""
    return name[:1].upper() + name[1:]


def format_list_and(items: Sequence[str]) -> str:
    """
    'John' / 'John and Jane' / 'John, Jane, and Bob'
    """
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return f"{', '.join(items[:-1])}, and {items[-1]}"


def format_list_or(items: Sequence[str]) -> str:
    """
    'John' / 'John or Jane' / 'John, Jane, or Bob'
    """
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} or {items[1]}"
    return f"{', '.join(items[:-1])}, or {items[-1]}"


def format_list_comma(items: Sequence[str]) -> str:
    """'John, Jane, Bob'"""
    return ", ".join(items) if items else ""


def format_list_newline(items: Sequence[str]) -> str:
    """One item per line."""
    return "\n".join(items) if items else ""


LIST_JOINERS = {
    "list_and": format_list_and,
    "list_or": format_list_or,
    "list_comma": format_list_comma,
    "list_newline": format_list_newline,
}


def format_list(items: Sequence[str], rule: str) -> str:
    """Join items with the joiner named by rule (default: list_and)."""
    return LIST_JOINERS.get(rule, format_list_and)(items)


def loop_records(items: Sequence[str]) -> List[Dict[str, Any]]:
    """Loop-ready records {value, isFirst, isLast, index} (1-indexed)."""
    last = len(items) - 1
    return [
        {"value": item, "isFirst": i == 0, "isLast": i == last, "index": i + 1}
        for i, item in enumerate(items)
    ]


def generate_array_helper_variables(base_name: str, items: Sequence[str]) -> Dict[str, Any]:
    """
    Derive helper variables from a list answer.

    Generated keys (base_name="founders"):
        foundersCount       number of items
        foundersFormatted   "A, B, and C"
        foundersList        "A, B, C"
        foundersOrList      "A, B, or C"
        foundersFirst       first item (only when non-empty)
        foundersLast        last item (only when non-empty)
        hasMultipleFounders "true" when 2+ items, else ""
        hasSingleFounders   "true" when exactly 1 item, else ""
        hasNoFounders       "true" when empty, else ""
        founders1..N        individual items
        founders            loop records for template iteration

    Returns:
        Dict of variable name -> str, plus the list-valued loop entry
    """
    capitalized = capitalize_first(base_name)
    count = len(items)

    result: Dict[str, Any] = {
        f"{base_name}Count": str(count),
        f"{base_name}Formatted": format_list_and(items),
        f"{base_name}List": format_list_comma(items),
        f"{base_name}OrList": format_list_or(items),
    }
    if items:
        result[f"{base_name}First"] = items[0]
        result[f"{base_name}Last"] = items[-1]

    result[f"hasMultiple{capitalized}"] = "true" if count >= 2 else ""
    result[f"hasSingle{capitalized}"] = "true" if count == 1 else ""
    result[f"hasNo{capitalized}"] = "true" if count == 0 else ""

    for index, item in enumerate(items, start=1):
        result[f"{base_name}{index}"] = item

    result[base_name] = loop_records(items)
    return result
