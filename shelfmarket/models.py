from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def _now() -> datetime:
    return datetime.now()


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    number = Column(String(50), nullable=False, unique=True)
    country = Column(String(100), nullable=False)
    company_type = Column(String(50), nullable=False, default="LTD")
    incorporation_date = Column(Date, nullable=True)
    incorporation_year = Column(Integer, nullable=True)
    purchase_price = Column(Numeric(12, 2), nullable=False, default=0)
    renewal_fee = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="USD")
    renewal_date = Column(Date, nullable=False)
    expiry_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default="available", index=True)
    payment_status = Column(String(20), nullable=False, default="pending")
    refund_status = Column(String(30), nullable=False, default="not-refunded")
    client_name = Column(String(255), nullable=True)
    client_email = Column(String(255), nullable=True)
    client_phone = Column(String(100), nullable=True)
    industry = Column(String(255), nullable=True)
    admin_notes = Column(String(1000), nullable=True)
    internal_notes = Column(String(1000), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    documents = Column(JSON, nullable=False, default=list)
    airtable_id = Column(String(50), nullable=True)
    created_at = Column(DateTime, nullable=False, default=_now)
    updated_at = Column(DateTime, nullable=False, default=_now)

    activity_log = relationship(
        "CompanyActivity",
        cascade="all, delete-orphan",
        back_populates="company",
        order_by="CompanyActivity.id",
    )
    ownership_history = relationship(
        "OwnershipHistoryEntry",
        cascade="all, delete-orphan",
        back_populates="company",
        order_by="OwnershipHistoryEntry.id",
    )


class CompanyActivity(Base):
    __tablename__ = "company_activity"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    timestamp = Column(DateTime, nullable=False, default=_now)
    action = Column(String(100), nullable=False)
    performed_by = Column(String(255), nullable=False, default="system")
    details = Column(String(1000), nullable=False, default="")
    previous_status = Column(String(20), nullable=True)
    new_status = Column(String(20), nullable=True)

    company = relationship("Company", back_populates="activity_log")


class OwnershipHistoryEntry(Base):
    __tablename__ = "company_ownership_history"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    previous_owner = Column(String(255), nullable=True)
    new_owner = Column(String(255), nullable=False)
    transfer_date = Column(Date, nullable=False, default=date.today)
    reason = Column(String(20), nullable=False)
    notes = Column(String(1000), nullable=True)

    company = relationship("Company", back_populates="ownership_history")


class Fee(Base):
    __tablename__ = "fees"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(500), nullable=True)
    fee_type = Column(String(20), nullable=False, default="fixed")
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=True)
    enabled = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=_now)
    updated_at = Column(DateTime, nullable=False, default=_now)


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=False, unique=True)
    description = Column(String(500), nullable=True)
    discount_type = Column(String(20), nullable=False, default="percentage")
    discount_value = Column(Numeric(12, 2), nullable=False, default=0)
    max_uses = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    expiry_date = Column(Date, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    applicable_to = Column(String(20), nullable=False, default="all")
    min_order_value = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime, nullable=False, default=_now)
    updated_at = Column(DateTime, nullable=False, default=_now)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), nullable=False, unique=True)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(100), nullable=True)
    billing_address = Column(String(500), nullable=True)
    country = Column(String(100), nullable=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    company_name = Column(String(255), nullable=False)
    company_number = Column(String(50), nullable=False)
    payment_method = Column(String(30), nullable=False, default="bank_transfer")
    payment_status = Column(String(20), nullable=False, default="pending")
    transaction_id = Column(String(100), nullable=True)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    fees_total = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="USD")
    fees_applied = Column(JSON, nullable=False, default=list)
    coupon_code = Column(String(50), nullable=True)
    payment_date = Column(DateTime, nullable=True)
    status = Column(String(30), nullable=False, default="pending-payment", index=True)
    status_changed_date = Column(DateTime, nullable=False, default=_now)
    purchase_date = Column(Date, nullable=False, default=date.today)
    renewal_date = Column(Date, nullable=True)
    renewal_fees = Column(Numeric(12, 2), nullable=False, default=0)
    refund_status = Column(String(20), nullable=False, default="none")
    admin_notes = Column(String(1000), nullable=True)
    internal_notes = Column(String(1000), nullable=True)
    created_at = Column(DateTime, nullable=False, default=_now)
    updated_at = Column(DateTime, nullable=False, default=_now)

    company = relationship("Company")
    status_history = relationship(
        "OrderStatusChange",
        cascade="all, delete-orphan",
        back_populates="order",
        order_by="OrderStatusChange.id",
    )
    refund_request = relationship(
        "RefundRequest",
        cascade="all, delete-orphan",
        back_populates="order",
        uselist=False,
    )
    documents = relationship(
        "OrderDocument",
        cascade="all, delete-orphan",
        back_populates="order",
        order_by="OrderDocument.id",
    )


class OrderStatusChange(Base):
    __tablename__ = "order_status_changes"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    from_status = Column(String(30), nullable=False)
    to_status = Column(String(30), nullable=False)
    changed_date = Column(DateTime, nullable=False, default=_now)
    changed_by = Column(String(255), nullable=False, default="admin")
    reason = Column(String(500), nullable=True)
    notes = Column(String(500), nullable=True)

    order = relationship("Order", back_populates="status_history")


class RefundRequest(Base):
    __tablename__ = "refund_requests"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, unique=True)
    request_date = Column(DateTime, nullable=False, default=_now)
    requested_by = Column(String(255), nullable=False)
    reason = Column(String(1000), nullable=False)
    status = Column(String(20), nullable=False, default="requested")
    requested_amount = Column(Numeric(12, 2), nullable=False, default=0)
    approved_amount = Column(Numeric(12, 2), nullable=True)
    refund_fee = Column(Numeric(12, 2), nullable=True)
    net_refund_amount = Column(Numeric(12, 2), nullable=True)
    approved_date = Column(DateTime, nullable=True)
    approved_by = Column(String(255), nullable=True)
    rejection_reason = Column(String(1000), nullable=True)
    notes = Column(String(1000), nullable=True)

    order = relationship("Order", back_populates="refund_request")


class OrderDocument(Base):
    __tablename__ = "order_documents"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    name = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=False, default="application/octet-stream")
    size = Column(Integer, nullable=False, default=0)
    visibility = Column(String(10), nullable=False, default="both")
    version = Column(Integer, nullable=False, default=1)
    uploaded_by = Column(String(255), nullable=False, default="admin")
    uploaded_date = Column(DateTime, nullable=False, default=_now)

    order = relationship("Order", back_populates="documents")


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(30), nullable=False, unique=True)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False)
    client_phone = Column(String(100), nullable=True)
    billing_address = Column(String(500), nullable=True)
    client_country = Column(String(100), nullable=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    company_name = Column(String(255), nullable=False)
    company_number = Column(String(50), nullable=True)
    order_number = Column(String(50), nullable=True)
    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    currency = Column(String(10), nullable=False, default="GBP")
    description = Column(String(1000), nullable=True)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    tax_rate = Column(Numeric(5, 2), nullable=True)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    custom_fee = Column(Numeric(12, 2), nullable=False, default=0)
    custom_fee_description = Column(String(255), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    payment_method = Column(String(30), nullable=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    paid_date = Column(Date, nullable=True)
    paid_amount = Column(Numeric(12, 2), nullable=True)
    transaction_id = Column(String(100), nullable=True)
    admin_notes = Column(String(1000), nullable=True)
    internal_notes = Column(String(1000), nullable=True)
    sent_count = Column(Integer, nullable=False, default=0)
    last_sent_date = Column(DateTime, nullable=True)
    airtable_id = Column(String(50), nullable=True)
    created_at = Column(DateTime, nullable=False, default=_now)
    updated_at = Column(DateTime, nullable=False, default=_now)

    lines = relationship(
        "InvoiceLine",
        cascade="all, delete-orphan",
        back_populates="invoice",
        order_by="InvoiceLine.sort_order",
    )
    status_history = relationship(
        "InvoiceStatusChange",
        cascade="all, delete-orphan",
        back_populates="invoice",
        order_by="InvoiceStatusChange.id",
    )
    attachments = relationship(
        "InvoiceAttachment",
        cascade="all, delete-orphan",
        back_populates="invoice",
        order_by="InvoiceAttachment.id",
    )


class InvoiceLine(Base):
    __tablename__ = "invoice_lines"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False)
    description = Column(String(500), nullable=False)
    quantity = Column(Numeric(12, 2), nullable=False, default=1)
    unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    sort_order = Column(Integer, nullable=False, default=1)

    invoice = relationship("Invoice", back_populates="lines")


class InvoiceStatusChange(Base):
    __tablename__ = "invoice_status_changes"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False)
    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    changed_date = Column(DateTime, nullable=False, default=_now)
    changed_by = Column(String(255), nullable=False, default="admin")
    reason = Column(String(500), nullable=True)

    invoice = relationship("Invoice", back_populates="status_history")


class InvoiceAttachment(Base):
    __tablename__ = "invoice_attachments"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False)
    name = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=False, default="application/octet-stream")
    size = Column(Integer, nullable=False, default=0)
    uploaded_date = Column(DateTime, nullable=False, default=_now)

    invoice = relationship("Invoice", back_populates="attachments")


class InvoiceSequence(Base):
    __tablename__ = "invoice_sequences"
    __table_args__ = (UniqueConstraint("year_full"),)

    id = Column(Integer, primary_key=True, index=True)
    year_full = Column(Integer, nullable=False)
    next_number = Column(Integer, nullable=False, default=1)


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=False)
    long_description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="USD")
    category = Column(String(50), nullable=False, default="Other")
    turnaround_days = Column(Integer, nullable=True)
    includes = Column(JSON, nullable=False, default=list)
    application_form_fields = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, nullable=False, default=_now)
    updated_at = Column(DateTime, nullable=False, default=_now)


class ServiceOrder(Base):
    __tablename__ = "service_orders"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    service_name = Column(String(255), nullable=False)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(100), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="USD")
    status = Column(String(20), nullable=False, default="pending", index=True)
    application_data = Column(JSON, nullable=False, default=dict)
    purchase_date = Column(Date, nullable=False, default=date.today)
    completion_date = Column(Date, nullable=True)
    notes = Column(String(1000), nullable=True)
    created_at = Column(DateTime, nullable=False, default=_now)
    updated_at = Column(DateTime, nullable=False, default=_now)

    service = relationship("Service")
    comments = relationship(
        "ServiceOrderComment",
        cascade="all, delete-orphan",
        back_populates="service_order",
        order_by="ServiceOrderComment.id",
    )
    status_history = relationship(
        "ServiceOrderStatusChange",
        cascade="all, delete-orphan",
        back_populates="service_order",
        order_by="ServiceOrderStatusChange.id",
    )


class ServiceOrderComment(Base):
    __tablename__ = "service_order_comments"

    id = Column(Integer, primary_key=True, index=True)
    service_order_id = Column(Integer, ForeignKey("service_orders.id"), nullable=False)
    author = Column(String(255), nullable=False)
    text = Column(String(2000), nullable=False)
    is_admin_only = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=_now)

    service_order = relationship("ServiceOrder", back_populates="comments")


class ServiceOrderStatusChange(Base):
    __tablename__ = "service_order_status_changes"

    id = Column(Integer, primary_key=True, index=True)
    service_order_id = Column(Integer, ForeignKey("service_orders.id"), nullable=False)
    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    changed_date = Column(DateTime, nullable=False, default=_now)
    changed_by = Column(String(255), nullable=False, default="admin")
    reason = Column(String(500), nullable=True)

    service_order = relationship("ServiceOrder", back_populates="status_history")


class TransferForm(Base):
    __tablename__ = "transfer_forms"

    id = Column(Integer, primary_key=True, index=True)
    form_number = Column(String(50), nullable=False, unique=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    company_name = Column(String(255), nullable=False)
    company_number = Column(String(50), nullable=False)
    country = Column(String(100), nullable=True)
    incorporation_date = Column(Date, nullable=True)
    seller_name = Column(String(255), nullable=True)
    seller_email = Column(String(255), nullable=True)
    seller_phone = Column(String(100), nullable=True)
    seller_address = Column(String(500), nullable=True)
    buyer_name = Column(String(255), nullable=True)
    buyer_email = Column(String(255), nullable=True)
    buyer_phone = Column(String(100), nullable=True)
    buyer_address = Column(String(500), nullable=True)
    total_shares = Column(Integer, nullable=False, default=0)
    total_share_capital = Column(Numeric(12, 2), nullable=False, default=0)
    price_per_share = Column(Numeric(12, 2), nullable=False, default=0)
    shareholders = Column(JSON, nullable=False, default=list)
    directors = Column(JSON, nullable=False, default=list)
    status = Column(String(30), nullable=False, default="under-review", index=True)
    submitted_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    amendments_required_count = Column(Integer, nullable=False, default=0)
    last_amendment_date = Column(DateTime, nullable=True)
    admin_notes = Column(String(1000), nullable=True)
    created_at = Column(DateTime, nullable=False, default=_now)
    updated_at = Column(DateTime, nullable=False, default=_now)

    comments = relationship(
        "TransferFormComment",
        cascade="all, delete-orphan",
        back_populates="form",
        order_by="TransferFormComment.id",
    )
    status_history = relationship(
        "TransferFormStatusChange",
        cascade="all, delete-orphan",
        back_populates="form",
        order_by="TransferFormStatusChange.id",
    )
    attachments = relationship(
        "TransferFormAttachment",
        cascade="all, delete-orphan",
        back_populates="form",
        order_by="TransferFormAttachment.id",
    )


class TransferFormComment(Base):
    __tablename__ = "transfer_form_comments"

    id = Column(Integer, primary_key=True, index=True)
    form_id = Column(Integer, ForeignKey("transfer_forms.id"), nullable=False)
    author = Column(String(255), nullable=False)
    text = Column(String(2000), nullable=False)
    is_admin_only = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=_now)

    form = relationship("TransferForm", back_populates="comments")


class TransferFormStatusChange(Base):
    __tablename__ = "transfer_form_status_changes"

    id = Column(Integer, primary_key=True, index=True)
    form_id = Column(Integer, ForeignKey("transfer_forms.id"), nullable=False)
    from_status = Column(String(30), nullable=False)
    to_status = Column(String(30), nullable=False)
    changed_date = Column(DateTime, nullable=False, default=_now)
    changed_by = Column(String(255), nullable=False, default="admin")
    reason = Column(String(500), nullable=True)
    notes = Column(String(500), nullable=True)

    form = relationship("TransferForm", back_populates="status_history")


class TransferFormAttachment(Base):
    __tablename__ = "transfer_form_attachments"

    id = Column(Integer, primary_key=True, index=True)
    form_id = Column(Integer, ForeignKey("transfer_forms.id"), nullable=False)
    name = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=False, default="application/octet-stream")
    size = Column(Integer, nullable=False, default=0)
    uploaded_by = Column(String(255), nullable=False, default="admin")
    uploaded_date = Column(DateTime, nullable=False, default=_now)

    form = relationship("TransferForm", back_populates="attachments")


class Wallet(Base):
    __tablename__ = "wallets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, unique=True)
    user_email = Column(String(255), nullable=False)
    user_name = Column(String(255), nullable=True)
    balance = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="USD")
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, nullable=False, default=_now)
    updated_at = Column(DateTime, nullable=False, default=_now)
    last_transaction_at = Column(DateTime, nullable=True)

    transactions = relationship(
        "WalletTransaction",
        cascade="all, delete-orphan",
        back_populates="wallet",
        order_by="WalletTransaction.id",
    )


class WalletTransaction(Base):
    __tablename__ = "wallet_transactions"

    id = Column(Integer, primary_key=True, index=True)
    wallet_id = Column(Integer, ForeignKey("wallets.id"), nullable=False)
    txn_type = Column(String(20), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(10), nullable=False)
    balance_before = Column(Numeric(12, 2), nullable=False)
    balance_after = Column(Numeric(12, 2), nullable=False)
    reason = Column(String(500), nullable=True)
    order_number = Column(String(50), nullable=True)
    reference = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, default=_now)
    created_by = Column(String(255), nullable=False, default="system")

    wallet = relationship("Wallet", back_populates="transactions")


class SupportTicket(Base):
    __tablename__ = "support_tickets"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    company_name = Column(String(255), nullable=True)
    inquiry_type = Column(String(100), nullable=False, default="general")
    message = Column(String(5000), nullable=False)
    created_at = Column(DateTime, nullable=False, default=_now)


class WhatsAppConfig(Base):
    __tablename__ = "whatsapp_config"

    id = Column(Integer, primary_key=True, index=True)
    initial_message = Column(String(500), nullable=False, default="Hello! How can we help you today?")
    numbers = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime, nullable=False, default=_now)


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(100), nullable=False, unique=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(String(500), nullable=False, default="")
    permissions = Column(JSON, nullable=False, default=list)
    is_custom = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=_now)
    updated_at = Column(DateTime, nullable=False, default=_now)

    users = relationship("User", back_populates="role")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(100), nullable=True)
    company = Column(String(255), nullable=True)
    account_status = Column(String(20), nullable=False, default="active", index=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=True)
    registration_date = Column(Date, nullable=False, default=date.today)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_now)
    updated_at = Column(DateTime, nullable=False, default=_now)

    role = relationship("Role", back_populates="users")
