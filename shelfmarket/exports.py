import csv
import io
from typing import Iterable

from .models import Invoice, Order

INVOICE_COLUMNS = [
    "Invoice Number",
    "Client Name",
    "Client Email",
    "Company Name",
    "Company Number",
    "Invoice Date",
    "Due Date",
    "Amount",
    "Status",
    "Payment Method",
]

ORDER_COLUMNS = [
    "Order ID",
    "Customer Name",
    "Customer Email",
    "Company Name",
    "Company Number",
    "Country",
    "Amount",
    "Currency",
    "Status",
    "Payment Method",
    "Payment Status",
    "Purchase Date",
]


def _render(header, rows) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def invoices_csv(invoices: Iterable[Invoice]) -> str:
    rows = (
        [
            inv.invoice_number,
            inv.client_name,
            inv.client_email,
            inv.company_name,
            inv.company_number or "",
            inv.invoice_date.isoformat(),
            inv.due_date.isoformat(),
            f"{inv.amount:.2f}",
            inv.status,
            inv.payment_method or "N/A",
        ]
        for inv in invoices
    )
    return _render(INVOICE_COLUMNS, rows)


def orders_csv(orders: Iterable[Order]) -> str:
    rows = (
        [
            order.order_number,
            order.customer_name,
            order.customer_email,
            order.company_name,
            order.company_number,
            order.country or "",
            f"{order.amount:.2f}",
            order.currency,
            order.status,
            order.payment_method,
            order.payment_status,
            order.purchase_date.isoformat(),
        ]
        for order in orders
    )
    return _render(ORDER_COLUMNS, rows)
