# reporting.py
"""
HTML rendering for the zero-value report.
"""

from typing import Any

from flask import render_template_string

from schemas import Order

REPORT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Zero-value orders</title>
  <style>
    body { font-family: sans-serif; margin: 2em; }
    table { border-collapse: collapse; width: 100%; }
    th, td { border: 1px solid #ccc; padding: 4px 8px; text-align: left; }
    th { background: #f0f0f0; }
    .summary { margin-bottom: 1em; }
  </style>
</head>
<body>
  <h1>Zero-value orders</h1>
  <div class="summary">
    <p>{{ orders|length }} zero-value orders found in {{ checked }} orders
       across {{ pages }} page(s).</p>
    {% if comment %}<p>Comment filter: <code>{{ comment }}</code></p>{% endif %}
  </div>
  {% if orders %}
  <table>
    <tr>
      <th>Order number</th><th>Created</th><th>Total</th>
      <th>Customer</th><th>Comment</th><th>{{ extracted_field }}</th>
    </tr>
    {% for order in orders %}
    <tr>
      <td>{{ order.get("OrderNumber", "") }}</td>
      <td>{{ order.get("CreatedAt", "") }}</td>
      <td>{{ order.get("TotalCost") }}</td>
      <td>{{ customer_name(order) }}</td>
      <td>{{ order.get("SellerComment") or "" }}</td>
      <td>{{ order.get(extracted_field, "") }}</td>
    </tr>
    {% endfor %}
  </table>
  {% else %}
  <p>No zero-value orders found.</p>
  {% endif %}
</body>
</html>
"""

ERROR_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Error</title></head>
<body>
  <div class="error" style="color: #a00;">
    <h1>{{ summary }}</h1>
    <p>{{ details }}</p>
  </div>
</body>
</html>
"""


def customer_name(order: Order) -> str:
    customer = order.get("Customer") or {}
    if not isinstance(customer, dict):
        return ""
    return customer.get("Name") or customer.get("Email") or ""


def render_zero_value_report(
    orders: list[Order],
    checked: int,
    pages: int,
    extracted_field: str,
    comment: Any = None,
) -> str:
    """Render the zero-value orders as an HTML table."""
    return render_template_string(
        REPORT_TEMPLATE,
        orders=orders,
        checked=checked,
        pages=pages,
        comment=comment,
        extracted_field=extracted_field,
        customer_name=customer_name,
    )


def render_error(summary: str, details: str) -> str:
    return render_template_string(ERROR_TEMPLATE, summary=summary, details=details)
