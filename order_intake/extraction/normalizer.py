"""Normalization of raw model completions into canonical line items.

The completion is untrusted: it may hold prose, a markdown fence, truncated
JSON or wrongly typed values. Nothing in this module raises to the caller.
Each raw entry is mapped field by field with defaults, and a completion that
cannot be parsed at all becomes a single fallback record flagged for review.
"""

import json
import logging
import math
import re
from datetime import date
from typing import Any

from order_intake.extraction.schema import ExtractionContext, OrderLineItem
from order_intake.shared.errors import ExtractionAmbiguityError

logger = logging.getLogger(__name__)

FALLBACK_NOTE = "AI extraction failed - manual review required"

_QUANTITY_PATTERN = re.compile(r"\s*([+-]?)(\d[\d,]*)")
_ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
_TRUE_STRINGS = {"true", "yes", "y", "1"}


def find_json_array(text: str) -> str | None:
    """Return the first balanced top-level JSON array in free text.

    Scanning starts at the first '['. Brackets inside JSON string literals are
    ignored. When that bracket is never closed (e.g. truncated output) there is
    no top-level array and None is returned.

    Args:
        text: Raw completion text

    Returns:
        The array substring, or None if no balanced array exists
    """
    start = text.find("[")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def parse_line_items(raw_completion: str | None) -> list[Any]:
    """Parse the JSON array out of a completion.

    An empty completion means the model had nothing to report and yields an
    empty list.

    Raises:
        ExtractionAmbiguityError: If no array is present or it is not valid JSON
    """
    if raw_completion is None or not raw_completion.strip():
        return []

    array_text = find_json_array(raw_completion)
    if array_text is None:
        raise ExtractionAmbiguityError("No JSON array found in model output")

    try:
        parsed = json.loads(array_text)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, oversized integer literals and deep nesting
        raise ExtractionAmbiguityError(f"Invalid JSON array: {type(e).__name__}") from e

    if not isinstance(parsed, list):
        raise ExtractionAmbiguityError(f"Expected array, got {type(parsed).__name__}")
    return parsed


def coerce_text(value: Any) -> str:
    """Strings are stripped, numbers stringified, anything else is empty."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return ""
    if isinstance(value, int):
        try:
            return str(value)
        except ValueError:
            return ""
    if isinstance(value, float) and math.isfinite(value):
        return str(int(value)) if value.is_integer() else str(value)
    return ""


def parse_quantity(value: Any) -> int:
    """Parse a unit count; anything unparseable or negative becomes 0.

    "12 pcs" -> 12, "1,200 units" -> 1200, 24.0 -> 24, "" -> 0, "-3" -> 0
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return max(int(value), 0)
    if isinstance(value, str):
        match = _QUANTITY_PATTERN.match(value)
        if match is None or match.group(1) == "-":
            return 0
        try:
            return int(match.group(2).replace(",", ""))
        except ValueError:
            return 0
    return 0


def parse_eta_date(value: Any) -> date | None:
    """Accept only a valid YYYY-MM-DD calendar date; never guess.

    The model is asked to normalize dates itself. Other formats, impossible
    dates and non-strings are treated as absent.
    """
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not _ISO_DATE_PATTERN.fullmatch(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def parse_review_flag(value: Any) -> bool:
    """Interpret the model's self-reported needs_review flag."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, int | float):
        return value != 0
    return False


def normalize_item(raw: Any, index: int, context: ExtractionContext) -> OrderLineItem:
    """Map one raw model entry to a fully defaulted line item.

    Vendor and customer fall back to the caller's hints. needs_review is forced
    on whenever vendor, customer or style is still empty after defaulting,
    regardless of what the model reported.

    Args:
        raw: One element of the parsed array (any JSON value)
        index: Position in the array, used for the record id
        context: Request-scoped values

    Returns:
        Normalized OrderLineItem
    """
    item: dict[str, Any] = raw if isinstance(raw, dict) else {}
    if not isinstance(raw, dict):
        logger.warning(f"Line item {index} is not an object: {type(raw).__name__}")

    vendor_name = coerce_text(item.get("vendor_name")) or context.vendor_hint
    customer_name = coerce_text(item.get("customer_name")) or context.customer_hint
    style_number = coerce_text(item.get("style_number"))
    notes = item.get("notes")

    needs_review = (
        parse_review_flag(item.get("needs_review"))
        or not vendor_name
        or not customer_name
        or not style_number
    )

    return OrderLineItem(
        id=_record_id(context, index),
        source_invoice_id=context.source_invoice_id,
        vendor_name=vendor_name,
        customer_name=customer_name,
        style_number=style_number,
        quantity=parse_quantity(item.get("quantity")),
        eta_date=parse_eta_date(item.get("eta_date")),
        created_at=context.requested_at,
        source_file_url=context.source_file_url,
        notes=notes.strip() if isinstance(notes, str) else "",
        needs_review=needs_review,
    )


def build_fallback_item(context: ExtractionContext) -> OrderLineItem:
    """Single sentinel record used when the completion cannot be parsed."""
    return OrderLineItem(
        id=_record_id(context, 0),
        source_invoice_id=context.source_invoice_id,
        vendor_name=context.vendor_hint,
        customer_name=context.customer_hint,
        style_number="",
        quantity=0,
        eta_date=None,
        created_at=context.requested_at,
        source_file_url=context.source_file_url,
        notes=FALLBACK_NOTE,
        needs_review=True,
    )


def normalize_completion(
    raw_completion: str | None, context: ExtractionContext
) -> tuple[list[OrderLineItem], bool]:
    """Turn a raw completion into line items; never fails outward.

    Args:
        raw_completion: Text returned by the extraction client
        context: Request-scoped values stamped onto every record

    Returns:
        Tuple of (items, used_fallback). Items hold one record per array
        element, or exactly one fallback record when the completion holds no
        parseable array; used_fallback tells the two cases apart.
    """
    try:
        raw_items = parse_line_items(raw_completion)
    except ExtractionAmbiguityError as e:
        logger.warning(f"Failed to parse AI response: {e}")
        return [build_fallback_item(context)], True

    items = [normalize_item(raw, index, context) for index, raw in enumerate(raw_items)]
    logger.info(f"Successfully extracted {len(items)} line items")
    return items, False


def normalize_response(raw_completion: str | None, context: ExtractionContext) -> list[OrderLineItem]:
    """Line items only; see normalize_completion."""
    items, _ = normalize_completion(raw_completion, context)
    return items


def _record_id(context: ExtractionContext, index: int) -> str:
    return f"{int(context.requested_at.timestamp() * 1000)}-{index}"
