"""Outbound mirror of companies and invoices into an Airtable base.

The local database is the system of record.  Sync is best effort: when no
token is configured every call is a no-op returning ``False``, and a
failing Airtable call is logged and reported as ``False`` without
touching the local write that triggered it.

Usage:

    sync = AirtableSync(AirtableClient(token, base_id))
    sync.sync_company(company)   # creates or updates the remote record
"""

import logging
import time
from functools import lru_cache
from typing import Any, Callable, Dict, Iterator, List, Optional

import httpx

from .config import Settings, get_settings
from .models import Company, Invoice

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class AirtableError(Exception):
    """Airtable answered with an error, or could not be reached."""


class AirtableClient:
    """
    Thin wrapper around the Airtable REST API.

    Transport errors and 429/5xx answers are retried with exponential
    backoff, up to ``max_attempts`` calls in total.  Any other error
    status raises :class:`AirtableError` straight away.
    """

    def __init__(
        self,
        token: str,
        base_id: str,
        api_url: str = "https://api.airtable.com/v0",
        timeout: float = 10.0,
        max_attempts: int = 3,
        backoff: float = 0.5,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_id = base_id
        self.max_attempts = max(1, max_attempts)
        self.backoff = backoff
        self._sleep = sleep
        self.client = httpx.Client(
            base_url=f"{api_url.rstrip('/')}/{base_id}",
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self.client.request(method, path, **kwargs)
            except httpx.TransportError as exc:
                last_error = exc
                logger.warning("Airtable %s %s failed (attempt %d): %s", method, path, attempt, exc)
            else:
                if response.status_code < 400:
                    return response.json()
                if response.status_code not in RETRYABLE_STATUS:
                    raise AirtableError(
                        f"Airtable API error {response.status_code}: {response.text}"
                    )
                last_error = AirtableError(f"Airtable API error {response.status_code}")
                logger.warning(
                    "Airtable %s %s returned %d (attempt %d)",
                    method, path, response.status_code, attempt,
                )
            if attempt < self.max_attempts:
                self._sleep(self.backoff * (2 ** (attempt - 1)))
        raise AirtableError(f"Airtable unreachable after {self.max_attempts} attempts: {last_error}")

    def iter_records(self, table: str, page_size: int = 100) -> Iterator[Dict]:
        params: Dict[str, Any] = {"pageSize": page_size}
        while True:
            data = self._request("GET", f"/{table}", params=params)
            yield from data.get("records", [])
            offset = data.get("offset")
            if not offset:
                return
            params["offset"] = offset

    def list_records(self, table: str) -> List[Dict]:
        return list(self.iter_records(table))

    def create_record(self, table: str, fields: Dict) -> Dict:
        return self._request("POST", f"/{table}", json={"fields": fields, "typecast": True})

    def update_record(self, table: str, record_id: str, fields: Dict) -> Dict:
        return self._request("PATCH", f"/{table}/{record_id}", json={"fields": fields, "typecast": True})


def company_fields(company: Company) -> Dict:
    return {
        "Company name": company.name,
        "Company number": company.number,
        "country": company.country,
        "Incorporate date": company.incorporation_date.isoformat() if company.incorporation_date else None,
        "Incorporate Year": company.incorporation_year,
        "Price": float(company.purchase_price or 0),
        "Renewal fees": float(company.renewal_fee or 0),
        "Status": company.status,
        "Client Name": company.client_name,
        "Client Email": company.client_email,
        "Client Phone": company.client_phone,
        "Industry": company.industry,
        "Admin Notes": company.admin_notes,
        "Internal Notes": company.internal_notes,
    }


def invoice_fields(invoice: Invoice) -> Dict:
    return {
        "Invoice Number": invoice.invoice_number,
        "Client Name": invoice.client_name,
        "Client Email": invoice.client_email,
        "Company Name": invoice.company_name,
        "Company Number": invoice.company_number,
        "Order ID": invoice.order_number,
        "Invoice Date": invoice.invoice_date.isoformat(),
        "Due Date": invoice.due_date.isoformat(),
        "Amount": float(invoice.amount or 0),
        "Status": invoice.status,
        "Payment Method": invoice.payment_method,
        "Paid Date": invoice.paid_date.isoformat() if invoice.paid_date else None,
        "Paid Amount": float(invoice.paid_amount) if invoice.paid_amount is not None else None,
        "Admin Notes": invoice.admin_notes,
        "Description": invoice.description,
    }


class AirtableSync:
    """Upserts companies and invoices; sets ``airtable_id`` on first create."""

    def __init__(self, client: Optional[AirtableClient], companies_table: str = "Companies",
                 invoices_table: str = "Invoices"):
        self.client = client
        self.companies_table = companies_table
        self.invoices_table = invoices_table

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _upsert(self, table: str, obj, fields: Dict) -> bool:
        if not self.enabled:
            return False
        try:
            if obj.airtable_id:
                self.client.update_record(table, obj.airtable_id, fields)
            else:
                record = self.client.create_record(table, fields)
                obj.airtable_id = record.get("id")
        except AirtableError as exc:
            logger.error("Airtable sync to %s failed: %s", table, exc)
            return False
        return True

    def sync_company(self, company: Company) -> bool:
        return self._upsert(self.companies_table, company, company_fields(company))

    def sync_invoice(self, invoice: Invoice) -> bool:
        return self._upsert(self.invoices_table, invoice, invoice_fields(invoice))


def build_airtable_sync(settings: Settings) -> AirtableSync:
    client = None
    if settings.airtable_api_token and settings.airtable_base_id:
        client = AirtableClient(
            token=settings.airtable_api_token,
            base_id=settings.airtable_base_id,
            api_url=settings.airtable_api_url,
            timeout=settings.http_timeout_seconds,
            max_attempts=settings.http_max_attempts,
            backoff=settings.http_backoff_seconds,
        )
    else:
        logger.info("AIRTABLE_API_TOKEN not configured, Airtable sync disabled")
    return AirtableSync(client, settings.airtable_companies_table, settings.airtable_invoices_table)


@lru_cache
def get_airtable_sync() -> AirtableSync:
    """Singleton sync helper (FastAPI dependency)."""
    return build_airtable_sync(get_settings())
