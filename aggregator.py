# aggregator.py
"""
Paginated fetch-and-filter over the Billbee order listing.

Pages are requested strictly one after another. The TotalPages value of the
most recent page is the loop bound, so orders created mid-scan can move it.
"""

import logging
import re
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

import config
from clients import BillbeeClient
from schemas import (
    AggregateResult,
    InvoiceLookupResult,
    Order,
    StopCondition,
    ValidAmount,
    parse_amount,
)

logger = logging.getLogger(__name__)

ZERO_EPSILON = Decimal("0.01")

Predicate = Callable[[Order], bool]

_LETTER_DIGIT = re.compile(r"^[A-Za-z]\d")


def is_zero_value(order: Order) -> bool:
    """True when TotalCost is 0, "0", null or within 0.01 of zero."""
    amount = parse_amount(order.get("TotalCost"))
    return isinstance(amount, ValidAmount) and -ZERO_EPSILON < amount.value < ZERO_EPSILON


def comment_contains(needle: str, field: str = config.COMMENT_FIELD) -> Predicate:
    """Case-insensitive substring match on the seller comment."""
    lowered = needle.lower()

    def predicate(order: Order) -> bool:
        return lowered in str(order.get(field) or "").lower()

    return predicate


def order_number_equals(target: str) -> Predicate:
    def predicate(order: Order) -> bool:
        value = order.get("OrderNumber")
        return value is not None and str(value) == target

    return predicate


def invoice_number_in(ids: Iterable[str]) -> Predicate:
    wanted = set(ids)

    def predicate(order: Order) -> bool:
        value = order.get("InvoiceNumber")
        return value is not None and str(value) in wanted

    return predicate


def all_of(*predicates: Predicate) -> Predicate:
    def predicate(order: Order) -> bool:
        return all(p(order) for p in predicates)

    return predicate


def extract_comment_field(
    order: Order,
    marker: str = config.COMMENT_MARKER,
    field: str = config.EXTRACTED_FIELD,
    prefix: Optional[str] = None,
    comment_field: str = config.COMMENT_FIELD,
) -> Order:
    """
    Attach the text following a marker in the seller comment.

    Args:
        order: Order record.
        marker: Case-insensitive token to search for.
        field: Name of the field to attach.
        prefix: When set, a remainder that starts with a digit (and is not
            already letter-then-digit) gets this prefix.
        comment_field: Field holding the free-text comment.

    Returns:
        A copy of the order with the extracted field, or the order itself
        when the marker is absent.
    """
    comment = order.get(comment_field)
    if not comment or not marker:
        return order

    index = str(comment).lower().find(marker.lower())
    if index == -1:
        return order

    remainder = re.sub(r"\s+", "", str(comment)[index + len(marker):])
    if prefix and remainder[:1].isdigit() and not _LETTER_DIGIT.match(remainder):
        remainder = prefix + remainder

    enriched = dict(order)
    enriched[field] = remainder
    return enriched


async def fetch_and_filter(
    client: BillbeeClient,
    predicate: Predicate,
    page_size: int = config.MAX_PAGE_SIZE,
    params: Optional[dict[str, Any]] = None,
    stop: Optional[StopCondition] = None,
    until: Optional[Callable[[list[Order]], bool]] = None,
) -> AggregateResult:
    """
    Scan order pages and collect the records matching a predicate.

    Args:
        client: Open BillbeeClient.
        predicate: Order filter.
        page_size: Orders per page, clamped to 1..MAX_PAGE_SIZE.
        params: Extra upstream filter parameters sent with every page.
        stop: Page and match bounds.
        until: Optional hook; the scan ends once it returns True for the
            accumulated matches.

    Returns:
        AggregateResult with matches in page order.

    Raises:
        UpstreamError: From any page request. Nothing collected so far is
            returned.
    """
    stop = stop or StopCondition()
    page_size = max(1, min(page_size, config.MAX_PAGE_SIZE))

    matches: list[Order] = []
    inspected: list[Any] = []
    sample: Optional[Order] = None
    total_pages = 0
    total_rows = 0
    current = 1

    while True:
        page = await client.get_orders_page(current, page_size, params)
        total_pages = page.total_pages
        total_rows = page.total_rows

        for order in page.orders:
            if sample is None:
                sample = order
            inspected.append(order.get("TotalCost"))
            if predicate(order):
                matches.append(order)

        logger.debug(
            "Page %d/%d: %d orders, %d matches so far",
            current,
            total_pages,
            len(page.orders),
            len(matches),
        )

        if current >= total_pages:
            break
        if stop.max_pages is not None and current >= stop.max_pages:
            break
        if stop.max_matches is not None and len(matches) >= stop.max_matches:
            break
        if until is not None and until(matches):
            break
        current += 1

    logger.info(
        "Scanned %d pages (%d orders), %d matches",
        current,
        len(inspected),
        len(matches),
    )
    return AggregateResult(
        orders=matches,
        pages_fetched=current,
        orders_checked=len(inspected),
        total_pages=total_pages,
        total_rows=total_rows,
        inspected_amounts=inspected,
        sample_order=sample,
    )


async def find_by_order_number(
    client: BillbeeClient,
    order_number: str,
    max_pages: int = config.LOOKUP_MAX_PAGES,
) -> tuple[Optional[Order], int]:
    """
    Scan pages for the order whose OrderNumber equals the given string.

    Returns:
        Tuple of (matching order or None, pages fetched).
    """
    result = await fetch_and_filter(
        client,
        order_number_equals(order_number),
        stop=StopCondition(max_pages=max_pages, max_matches=1),
    )
    order = result.orders[0] if result.orders else None
    if order is None:
        logger.warning(
            "Order %s not found after %d pages", order_number, result.pages_fetched
        )
    return order, result.pages_fetched


async def find_by_invoice_ids(
    client: BillbeeClient,
    ids: list[str],
    max_pages: int = config.LOOKUP_MAX_PAGES,
) -> InvoiceLookupResult:
    """
    Collect every order whose invoice number is among the requested ids.

    The scan ends early once each requested id has matched at least once.

    Args:
        client: Open BillbeeClient.
        ids: Requested invoice numbers as strings.
        max_pages: Page ceiling.

    Returns:
        InvoiceLookupResult with matches and the ids never found.
    """
    wanted = set(ids)

    def all_found(matches: list[Order]) -> bool:
        return wanted <= {str(o.get("InvoiceNumber")) for o in matches}

    result = await fetch_and_filter(
        client,
        invoice_number_in(wanted),
        stop=StopCondition(max_pages=max_pages),
        until=all_found,
    )

    found = {str(o.get("InvoiceNumber")) for o in result.orders}
    not_found = [i for i in ids if i not in found]
    if not_found:
        logger.warning("Invoice ids not found: %s", not_found)

    return InvoiceLookupResult(
        orders=result.orders,
        not_found=not_found,
        pages_fetched=result.pages_fetched,
    )
