# schemas.py
"""
Pydantic models for the Billbee order gateway.

Defines upstream page shapes, the tagged amount parse result, validated
query parameters and the response bodies returned by the gateway.
"""

import math
from decimal import Decimal, InvalidOperation, getcontext
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

import config
from errors import ClientInputError

# Billbee orders are plain JSON objects; only a few fields are inspected.
Order = dict[str, Any]


class ValidAmount(BaseModel):
    """Amount that parsed to a finite decimal."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["valid"] = "valid"
    value: Decimal


class Unparseable(BaseModel):
    """Amount that could not be read as a number."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unparseable"] = "unparseable"
    raw: Any = None


Amount = Union[ValidAmount, Unparseable]


def parse_amount(raw: Any) -> Amount:
    """
    Parse an upstream TotalCost value.

    Billbee encodes amounts inconsistently: numbers, numeric strings and
    null all occur. Null is read as zero.

    Args:
        raw: The raw TotalCost value from an order.

    Returns:
        ValidAmount with the decimal value, or Unparseable.
    """
    if raw is None:
        return ValidAmount(value=Decimal(0))
    if isinstance(raw, bool):
        return Unparseable(raw=raw)
    if isinstance(raw, float) and not math.isfinite(raw):
        return Unparseable(raw=raw)

    if isinstance(raw, (int, float, Decimal)):
        text = str(raw)
    elif isinstance(raw, str):
        text = raw.strip()
    else:
        return Unparseable(raw=raw)

    try:
        value = Decimal(text)
    except InvalidOperation:
        return Unparseable(raw=raw)

    if not value.is_finite():
        return Unparseable(raw=raw)
    context = getcontext()
    if value and not context.Emin <= value.adjusted() <= context.Emax:
        return Unparseable(raw=raw)
    return ValidAmount(value=value)


class Paging(BaseModel):
    """Paging descriptor returned with every Billbee list response."""

    model_config = ConfigDict(populate_by_name=True)

    page: Optional[int] = Field(default=None, alias="Page")
    total_pages: Optional[int] = Field(default=None, alias="TotalPages")
    total_rows: Optional[int] = Field(default=None, alias="TotalRows")
    page_size: Optional[int] = Field(default=None, alias="PageSize")


class OrderPage(BaseModel):
    """One page of the Billbee order listing."""

    model_config = ConfigDict(populate_by_name=True)

    paging: Optional[Paging] = Field(default=None, alias="Paging")
    data: Optional[list[Order]] = Field(default=None, alias="Data")
    error_message: Optional[str] = Field(default=None, alias="ErrorMessage")
    error_code: Optional[int] = Field(default=None, alias="ErrorCode")

    @property
    def orders(self) -> list[Order]:
        return self.data or []

    @property
    def total_pages(self) -> int:
        if self.paging is None or self.paging.total_pages is None:
            return 0
        return self.paging.total_pages

    @property
    def total_rows(self) -> int:
        if self.paging is None or self.paging.total_rows is None:
            return 0
        return self.paging.total_rows

    @property
    def failed(self) -> bool:
        """True when the body carries a Billbee error despite a 2xx status."""
        return bool(self.error_message) or bool(self.error_code)


class StopCondition(BaseModel):
    """Bounds for a paginated scan. None means no bound."""

    max_pages: Optional[int] = Field(default=None, ge=1)
    max_matches: Optional[int] = Field(default=None, ge=1)


class AggregateResult(BaseModel):
    """Outcome of a paginated fetch-and-filter run."""

    orders: list[Order] = Field(default_factory=list)
    pages_fetched: int = 0
    orders_checked: int = 0
    total_pages: int = 0
    total_rows: int = 0
    inspected_amounts: list[Any] = Field(
        default_factory=list, description="Raw TotalCost of every order seen"
    )
    sample_order: Optional[Order] = None


class InvoiceLookupResult(BaseModel):
    """Orders matched by invoice number, plus the ids never seen."""

    orders: list[Order] = Field(default_factory=list)
    not_found: list[str] = Field(default_factory=list)
    pages_fetched: int = 0


def parse_query(model: type[BaseModel], args: Any) -> BaseModel:
    """
    Validate request query arguments against a model.

    Args:
        model: Query model class.
        args: Mapping of query arguments (first value per key).

    Returns:
        Validated model instance.

    Raises:
        ClientInputError: If any argument fails validation.
    """
    data = args.to_dict() if hasattr(args, "to_dict") else dict(args)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ClientInputError(f"Invalid query parameters: {problems}")


class OrderFilters(BaseModel):
    """Query parameters accepted by GET /orders."""

    page: Optional[int] = Field(default=None, ge=1)
    pageSize: Optional[int] = Field(default=None, ge=1, le=config.MAX_PAGE_SIZE)
    createdAtMin: Optional[str] = None
    createdAtMax: Optional[str] = None
    modifiedAtMin: Optional[str] = None
    modifiedAtMax: Optional[str] = None
    state: Optional[int] = None
    shopId: Optional[int] = None
    tag: Optional[str] = None
    minTotalValue: Optional[float] = None

    def to_params(self) -> dict[str, Any]:
        """
        Build the upstream query parameters actually sent to Billbee.

        Returns:
            Dict of set parameters; state is renamed to orderStateId.
        """
        params = self.model_dump(exclude_none=True)
        if "state" in params:
            params["orderStateId"] = params.pop("state")
        return params


class ProductQuery(BaseModel):
    """Query parameters accepted by GET /products."""

    page: Optional[int] = Field(default=None, ge=1)
    pageSize: Optional[int] = Field(default=None, ge=1, le=config.MAX_PAGE_SIZE)


class ZeroValueQuery(BaseModel):
    """Query parameters accepted by GET /orders/zero-value."""

    comment: Optional[str] = None
    minOrderDate: Optional[str] = None
    maxOrderDate: Optional[str] = None
    shopId: Optional[str] = None
    maxPages: Optional[int] = Field(default=config.ZERO_VALUE_MAX_PAGES, ge=1)
    stopAfter: Optional[int] = Field(default=None, ge=1)
    pageSize: int = Field(default=config.MAX_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE)
    normalize: bool = config.COMMENT_PREFIX_ENABLED
    debug: bool = False
    format: Literal["json", "html"] = "json"

    @field_validator("maxPages", mode="before")
    @classmethod
    def _unbounded(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().lower() in ("all", "unbounded"):
            return None
        return v

    @field_validator("comment")
    @classmethod
    def _blank_comment(cls, v: Optional[str]) -> Optional[str]:
        return v if v and v.strip() else None

    def upstream_params(self) -> dict[str, Any]:
        """Passthrough filters forwarded with every page request."""
        params = {
            "minOrderDate": self.minOrderDate,
            "maxOrderDate": self.maxOrderDate,
            "shopId": self.shopId,
        }
        return {k: v for k, v in params.items() if v}

    def stop_condition(self) -> StopCondition:
        return StopCondition(max_pages=self.maxPages, max_matches=self.stopAfter)


class ZeroValueDebug(BaseModel):
    """Diagnostics about the TotalCost values seen during a scan."""

    uniqueTotalCostValues: list[Any]
    sampleOrder: Optional[Order]
    lowestTotalCosts: list[Any]


class ZeroValueResponse(BaseModel):
    """Response body for GET /orders/zero-value."""

    success: bool = True
    description: str
    totalZeroValueOrders: int
    totalOrdersChecked: int
    searchedPages: int
    appliedFilters: dict[str, Any] = Field(default_factory=dict)
    orders: list[Order]
    debug: Optional[ZeroValueDebug] = None


class InvoiceLookupResponse(BaseModel):
    """Response body for GET /orders/by-invoice-ids."""

    success: bool = True
    requestedIds: list[str]
    totalFound: int
    notFound: list[str]
    searchedPages: int
    orders: list[Order]
