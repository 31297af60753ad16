"""
Shared fixtures: a fake Billbee upstream served through httpx.MockTransport.

No real network calls are made. The fake slices its order list into pages of
a fixed size (the upstream decides the page size, like Billbee capping it)
and records every request so tests can assert how many pages were fetched.
"""

import math

import httpx
import pytest

from app import create_app
from clients import BillbeeClient

BASE_URL = "https://billbee.test/api/v1"


class FakeBillbee:
    """In-memory stand-in for the Billbee orders and products resources."""

    def __init__(
        self,
        orders=None,
        page_size=2,
        fail_on_page=None,
        reported_pages=None,
        products=None,
    ):
        self.orders = list(orders or [])
        self.page_size = page_size
        self.fail_on_page = fail_on_page
        self.reported_pages = reported_pages or {}
        self.products = products if products is not None else {"Data": []}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path.endswith("/products"):
            return httpx.Response(200, json=self.products)

        page = int(request.url.params.get("page", 1))
        if page == self.fail_on_page:
            return httpx.Response(500, json={"ErrorMessage": "Internal upstream failure"})

        start = (page - 1) * self.page_size
        chunk = self.orders[start:start + self.page_size]
        total_pages = self.reported_pages.get(
            page, math.ceil(len(self.orders) / self.page_size)
        )
        return httpx.Response(
            200,
            json={
                "Paging": {
                    "Page": page,
                    "TotalPages": total_pages,
                    "TotalRows": len(self.orders),
                    "PageSize": self.page_size,
                },
                "ErrorMessage": None,
                "ErrorCode": 0,
                "Data": chunk,
            },
        )

    def client(self) -> BillbeeClient:
        return BillbeeClient(
            base_url=BASE_URL,
            api_key="test-key",
            username="user@example.com",
            password="secret",
            transport=httpx.MockTransport(self.handler),
        )

    @property
    def pages_requested(self) -> list[int]:
        return [
            int(r.url.params["page"])
            for r in self.requests
            if r.url.path.endswith("/orders")
        ]


@pytest.fixture
def make_order():
    """Factory for Billbee-shaped order records."""

    def _make(n, total=10.0, comment=None, invoice=None):
        return {
            "Id": n,
            "OrderNumber": f"A-{n}",
            "InvoiceNumber": invoice,
            "TotalCost": total,
            "CreatedAt": "2024-03-01T10:00:00",
            "SellerComment": comment,
            "Customer": {"Name": f"Customer {n}"},
            "OrderItems": [],
        }

    return _make


@pytest.fixture
def upstream():
    return FakeBillbee()


@pytest.fixture
def http(upstream):
    """Flask test client wired to the fake upstream."""
    app = create_app(upstream.client)
    app.testing = True
    return app.test_client()
