# app.py
"""
Flask application exposing the Billbee order gateway.

Usage:
    flask --app app run
    python main.py --port 3000
"""

import logging
from decimal import Decimal
from typing import Any, Callable, Optional

from flask import Blueprint, Flask, Response, current_app, jsonify, request

import config
from aggregator import (
    all_of,
    comment_contains,
    extract_comment_field,
    fetch_and_filter,
    find_by_invoice_ids,
    find_by_order_number,
    is_zero_value,
)
from clients import BillbeeClient
from errors import ClientInputError, GatewayError, NotFoundError
from reporting import render_error, render_zero_value_report
from schemas import (
    AggregateResult,
    InvoiceLookupResponse,
    OrderFilters,
    ProductQuery,
    ValidAmount,
    ZeroValueDebug,
    ZeroValueQuery,
    ZeroValueResponse,
    parse_amount,
    parse_query,
)

logger = logging.getLogger(__name__)

bp = Blueprint("gateway", __name__)


def billbee() -> BillbeeClient:
    """Build a client from the factory registered on the current app."""
    return current_app.extensions["billbee_client_factory"]()


def error_response(summary: str, error: GatewayError, **extra: Any):
    logger.error("%s: %s", summary, error.message)
    body = {"error": summary, "details": error.message}
    body.update(extra)
    return jsonify(body), error.status_code


def _amount_sort_key(raw: Any) -> tuple:
    amount = parse_amount(raw)
    if isinstance(amount, ValidAmount):
        return (0, amount.value)
    return (1, Decimal(0))


def _unique_key(raw: Any) -> tuple:
    """Dedupe key: numbers by value, everything else by type and repr."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        amount = parse_amount(raw)
        if isinstance(amount, ValidAmount):
            return ("number", amount.value)
    return (type(raw).__name__, repr(raw))


def build_debug(result: AggregateResult) -> ZeroValueDebug:
    """
    Summarise the TotalCost values seen during a zero-value scan.

    Args:
        result: Completed scan.

    Returns:
        ZeroValueDebug with the first 20 distinct values, a sample order and
        every amount below 10.
    """
    unique = []
    seen = set()
    for raw in result.inspected_amounts:
        key = _unique_key(raw)
        if key not in seen:
            seen.add(key)
            unique.append(raw)
    unique.sort(key=_amount_sort_key)

    lowest = []
    for raw in result.inspected_amounts:
        amount = parse_amount(raw)
        if isinstance(amount, ValidAmount) and amount.value < 10:
            lowest.append(raw)
    lowest.sort(key=_amount_sort_key)

    return ZeroValueDebug(
        uniqueTotalCostValues=unique[:20],
        sampleOrder=result.sample_order,
        lowestTotalCosts=lowest,
    )


def parse_ids(raw: Optional[str]) -> list[str]:
    """Split a comma separated id list, dropping blanks and duplicates."""
    ids = []
    for part in (raw or "").split(","):
        part = part.strip()
        if part and part not in ids:
            ids.append(part)
    return ids


@bp.route("/", methods=["GET"])
def index():
    return jsonify({"message": "Billbee API Client is running!"})


@bp.route("/orders", methods=["GET"])
async def list_orders():
    """Pass the order listing through with optional filters."""
    try:
        filters = parse_query(OrderFilters, request.args)
        params = filters.to_params()
        async with billbee() as client:
            page = await client.list_orders(params)
    except GatewayError as e:
        return error_response("Failed to fetch orders", e)

    return jsonify(
        {
            "success": True,
            "pagination": page.paging.model_dump(by_alias=True) if page.paging else None,
            "totalOrders": page.total_rows,
            "orders": page.orders,
            "appliedFilters": params,
        }
    )


@bp.route("/orders/zero-value", methods=["GET"])
async def zero_value_orders():
    """
    Collect orders with a zero total across pages.

    Supports an optional comment substring filter and renders HTML when
    called with format=html.
    """
    html = request.args.get("format") == "html"
    try:
        query = parse_query(ZeroValueQuery, request.args)
        predicate = is_zero_value
        if query.comment:
            predicate = all_of(is_zero_value, comment_contains(query.comment))

        async with billbee() as client:
            result = await fetch_and_filter(
                client,
                predicate,
                page_size=query.pageSize,
                params=query.upstream_params(),
                stop=query.stop_condition(),
            )
    except GatewayError as e:
        if html:
            logger.error("Failed to fetch zero-value orders: %s", e.message)
            return Response(
                render_error("Failed to fetch zero-value orders", e.message),
                status=e.status_code,
                mimetype="text/html",
            )
        return error_response("Failed to fetch zero-value orders", e)

    prefix = config.COMMENT_PREFIX_LETTER if query.normalize else None
    orders = [extract_comment_field(o, prefix=prefix) for o in result.orders]

    if html:
        return Response(
            render_zero_value_report(
                orders,
                checked=result.orders_checked,
                pages=result.pages_fetched,
                extracted_field=config.EXTRACTED_FIELD,
                comment=query.comment,
            ),
            mimetype="text/html",
        )

    applied = query.upstream_params()
    if query.comment:
        applied["comment"] = query.comment

    body = ZeroValueResponse(
        description="Zero-value orders",
        totalZeroValueOrders=len(orders),
        totalOrdersChecked=result.orders_checked,
        searchedPages=result.pages_fetched,
        appliedFilters=applied,
        orders=orders,
        debug=build_debug(result) if query.debug else None,
    )
    exclude = {"debug"} if body.debug is None else None
    return jsonify(body.model_dump(mode="json", exclude=exclude))


@bp.route("/orders/by-id/<order_id>", methods=["GET"])
async def order_by_id(order_id: str):
    """Find an order by its order number."""
    pages = 0
    try:
        async with billbee() as client:
            order, pages = await find_by_order_number(client, order_id)
        if order is None:
            raise NotFoundError(f"No order with number {order_id} in {pages} page(s)")
    except NotFoundError as e:
        return error_response("Order not found", e, searchedPages=pages)
    except GatewayError as e:
        return error_response("Failed to fetch order", e)

    return jsonify({"success": True, "order": order, "searchedPages": pages})


@bp.route("/orders/by-invoice-ids", methods=["GET"])
async def orders_by_invoice_ids():
    """Find every order whose invoice number is in ?ids=a,b,c."""
    try:
        ids = parse_ids(request.args.get("ids"))
        if not ids:
            raise ClientInputError("No invoice ids supplied; use ?ids=a,b,c")

        async with billbee() as client:
            result = await find_by_invoice_ids(client, ids)
    except GatewayError as e:
        return error_response("Failed to fetch orders by invoice ids", e)

    body = InvoiceLookupResponse(
        requestedIds=ids,
        totalFound=len(result.orders),
        notFound=result.not_found,
        searchedPages=result.pages_fetched,
        orders=result.orders,
    )
    return jsonify(body.model_dump(mode="json"))


@bp.route("/products", methods=["GET"])
async def list_products():
    try:
        query = parse_query(ProductQuery, request.args)
        async with billbee() as client:
            body = await client.list_products(query.model_dump(exclude_none=True))
    except GatewayError as e:
        return error_response("Failed to fetch products", e)
    return jsonify(body)


def create_app(client_factory: Optional[Callable[[], BillbeeClient]] = None) -> Flask:
    """
    Create the Flask app.

    Args:
        client_factory: Callable returning a fresh BillbeeClient per request.
            Defaults to a client built from environment configuration.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)
    app.json.sort_keys = False
    app.extensions["billbee_client_factory"] = client_factory or BillbeeClient
    app.register_blueprint(bp)
    return app
