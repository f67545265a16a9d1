from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .renewal import calculate_renewal_days_left, renewal_window_status
from .services import COUPON_SCOPES, DISCOUNT_TYPES, invoice_display_status, normalize_fee_type


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class StatusChangeIn(BaseModel):
    status: str
    reason: Optional[str] = None
    notes: Optional[str] = None
    changed_by: str = "admin"


# ---------------------------------------------------------------------
# Companies
# ---------------------------------------------------------------------
class CompanyActivityOut(ORMModel):
    id: int
    timestamp: datetime
    action: str
    performed_by: str
    details: str
    previous_status: Optional[str] = None
    new_status: Optional[str] = None


class OwnershipHistoryOut(ORMModel):
    id: int
    previous_owner: Optional[str] = None
    new_owner: str
    transfer_date: date
    reason: str
    notes: Optional[str] = None


class CompanyBase(BaseModel):
    name: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    company_type: str = "LTD"
    incorporation_date: Optional[date] = None
    incorporation_year: Optional[int] = None
    purchase_price: Decimal = Field(Decimal("0"), ge=0)
    renewal_fee: Decimal = Field(Decimal("0"), ge=0)
    currency: str = "USD"
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    industry: Optional[str] = None
    admin_notes: Optional[str] = None
    internal_notes: Optional[str] = None
    tags: List[Any] = Field(default_factory=list)
    documents: List[Dict[str, Any]] = Field(default_factory=list)


class CompanyCreate(CompanyBase):
    renewal_date: Optional[date] = None
    expiry_date: Optional[date] = None
    status: str = "available"
    payment_status: str = "pending"


class CompanyUpdate(BaseModel):
    name: Optional[str] = None
    number: Optional[str] = None
    country: Optional[str] = None
    company_type: Optional[str] = None
    incorporation_date: Optional[date] = None
    incorporation_year: Optional[int] = None
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    renewal_fee: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = None
    renewal_date: Optional[date] = None
    expiry_date: Optional[date] = None
    payment_status: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    industry: Optional[str] = None
    admin_notes: Optional[str] = None
    internal_notes: Optional[str] = None
    tags: Optional[List[Any]] = None
    documents: Optional[List[Dict[str, Any]]] = None


class CompanyOut(ORMModel, CompanyBase):
    id: int
    renewal_date: date
    expiry_date: Optional[date] = None
    status: str
    payment_status: str
    refund_status: str
    airtable_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    activity_log: List[CompanyActivityOut] = Field(default_factory=list)
    ownership_history: List[OwnershipHistoryOut] = Field(default_factory=list)

    @computed_field
    @property
    def renewal_days_left(self) -> int:
        return calculate_renewal_days_left(self.renewal_date)

    @computed_field
    @property
    def renewal_window(self) -> str:
        return renewal_window_status(self.renewal_date)


class RefundIn(BaseModel):
    reason: str = Field(..., min_length=1)
    amount: Decimal = Field(Decimal("0"), ge=0)


class CancelIn(BaseModel):
    reason: str = Field(..., min_length=1)


class TransferOwnershipIn(BaseModel):
    new_owner_name: str = Field(..., min_length=1)
    new_owner_email: str = Field(..., min_length=1)
    reason: str = ""


class CompanyHealthOut(BaseModel):
    company_id: int
    score: int
    healthy: bool
    renewal_due_soon: bool
    expired: bool
    days_until_renewal: int
    renewal_window: str


class RenewalNotificationOut(BaseModel):
    company_id: int
    company_name: str
    days_left: int
    renewal_date: date
    type: str
    message: str


class CompanyStatisticsOut(BaseModel):
    total: int
    active: int
    expired: int
    available: int
    cancelled: int
    refunded: int
    sold: int
    total_revenue: Decimal
    renewing_soon: int
    payment_pending: int


# ---------------------------------------------------------------------
# Fees & coupons
# ---------------------------------------------------------------------
class FeeIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    fee_type: str = "fixed"
    amount: Decimal = Field(..., ge=0)
    currency: Optional[str] = None
    enabled: bool = True
    sort_order: int = 1

    @field_validator("fee_type")
    @classmethod
    def _fee_type(cls, value: str) -> str:
        return normalize_fee_type(value)


class FeeUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    fee_type: Optional[str] = None
    amount: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = None
    enabled: Optional[bool] = None
    sort_order: Optional[int] = None

    @field_validator("fee_type")
    @classmethod
    def _fee_type(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return normalize_fee_type(value)


class FeeOut(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    fee_type: str
    amount: Decimal
    currency: Optional[str] = None
    enabled: bool
    sort_order: int


class AppliedFee(BaseModel):
    id: Optional[int] = None
    name: str
    amount: Decimal


class CouponIn(BaseModel):
    code: str = Field(..., min_length=1)
    description: Optional[str] = None
    discount_type: str = "percentage"
    discount_value: Decimal = Field(..., ge=0)
    max_uses: Optional[int] = Field(None, ge=1)
    expiry_date: Optional[date] = None
    active: bool = True
    applicable_to: str = "all"
    min_order_value: Optional[Decimal] = Field(None, ge=0)

    @field_validator("code")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("discount_type")
    @classmethod
    def _discount_type(cls, value: str) -> str:
        if value not in DISCOUNT_TYPES:
            raise ValueError("discount_type must be percentage or fixed")
        return value

    @field_validator("applicable_to")
    @classmethod
    def _scope(cls, value: str) -> str:
        if value not in COUPON_SCOPES:
            raise ValueError("applicable_to must be all, companies or services")
        return value


class CouponUpdate(BaseModel):
    description: Optional[str] = None
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    max_uses: Optional[int] = Field(None, ge=1)
    expiry_date: Optional[date] = None
    active: Optional[bool] = None
    applicable_to: Optional[str] = None
    min_order_value: Optional[Decimal] = Field(None, ge=0)


class CouponOut(ORMModel):
    id: int
    code: str
    description: Optional[str] = None
    discount_type: str
    discount_value: Decimal
    max_uses: Optional[int] = None
    used_count: int
    expiry_date: Optional[date] = None
    active: bool
    applicable_to: str
    min_order_value: Optional[Decimal] = None


class CouponValidateIn(BaseModel):
    code: str = Field(..., min_length=1)
    order_total: Decimal = Field(..., ge=0)
    scope: str = "all"


class CouponValidationOut(BaseModel):
    valid: bool
    discount: Decimal
    discounted_total: Decimal
    coupon: Optional[CouponOut] = None
    message: str


class QuoteIn(BaseModel):
    subtotal: Decimal = Field(..., ge=0)
    coupon_code: Optional[str] = None
    scope: str = "companies"


class QuoteOut(BaseModel):
    subtotal: Decimal
    fees: List[AppliedFee]
    total_fees: Decimal
    discount: Decimal
    coupon_code: Optional[str] = None
    total: Decimal


# ---------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------
class OrderStatusChangeOut(ORMModel):
    id: int
    from_status: str
    to_status: str
    changed_date: datetime
    changed_by: str
    reason: Optional[str] = None
    notes: Optional[str] = None


class OrderDocumentOut(ORMModel):
    id: int
    name: str
    content_type: str
    size: int
    visibility: str
    version: int
    uploaded_by: str
    uploaded_date: datetime


class RefundRequestOut(ORMModel):
    id: int
    request_date: datetime
    requested_by: str
    reason: str
    status: str
    requested_amount: Decimal
    approved_amount: Optional[Decimal] = None
    refund_fee: Optional[Decimal] = None
    net_refund_amount: Optional[Decimal] = None
    approved_date: Optional[datetime] = None
    approved_by: Optional[str] = None
    rejection_reason: Optional[str] = None


class OrderCreate(BaseModel):
    company_id: int
    customer_name: str = Field(..., min_length=1)
    customer_email: str = Field(..., min_length=3)
    customer_phone: Optional[str] = None
    billing_address: Optional[str] = None
    country: Optional[str] = None
    payment_method: str = "bank_transfer"
    coupon_code: Optional[str] = None


class OrderUpdate(BaseModel):
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    billing_address: Optional[str] = None
    country: Optional[str] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    renewal_date: Optional[date] = None
    admin_notes: Optional[str] = None
    internal_notes: Optional[str] = None


class OrderOut(ORMModel):
    id: int
    order_number: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    billing_address: Optional[str] = None
    country: Optional[str] = None
    company_id: Optional[int] = None
    company_name: str
    company_number: str
    payment_method: str
    payment_status: str
    transaction_id: Optional[str] = None
    subtotal: Decimal
    fees_total: Decimal
    discount: Decimal
    amount: Decimal
    currency: str
    fees_applied: List[AppliedFee] = Field(default_factory=list)
    coupon_code: Optional[str] = None
    payment_date: Optional[datetime] = None
    status: str
    status_changed_date: datetime
    purchase_date: date
    renewal_date: Optional[date] = None
    renewal_fees: Decimal
    refund_status: str
    admin_notes: Optional[str] = None
    internal_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    status_history: List[OrderStatusChangeOut] = Field(default_factory=list)
    refund_request: Optional[RefundRequestOut] = None
    documents: List[OrderDocumentOut] = Field(default_factory=list)


class RefundRequestIn(BaseModel):
    reason: str = Field(..., min_length=1)
    requested_amount: Decimal = Field(..., ge=0)
    requested_by: str = "customer"


class RefundApproveIn(BaseModel):
    approved_amount: Decimal = Field(..., ge=0)
    refund_fee: Decimal = Field(Decimal("0"), ge=0)
    approved_by: str = "admin"


class RefundRejectIn(BaseModel):
    reason: str = Field(..., min_length=1)


# ---------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------
class InvoiceLineIn(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(Decimal("1"), gt=0)
    unit_price: Decimal = Field(Decimal("0"), ge=0)


class InvoiceLineOut(ORMModel):
    id: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    total: Decimal
    sort_order: int


class InvoiceStatusChangeOut(ORMModel):
    id: int
    from_status: str
    to_status: str
    changed_date: datetime
    changed_by: str
    reason: Optional[str] = None


class InvoiceAttachmentOut(ORMModel):
    id: int
    name: str
    content_type: str
    size: int
    uploaded_date: datetime


class InvoiceCreate(BaseModel):
    invoice_number: Optional[str] = None
    client_name: str = Field(..., min_length=1)
    client_email: str = Field(..., min_length=3)
    client_phone: Optional[str] = None
    billing_address: Optional[str] = None
    client_country: Optional[str] = None
    company_id: Optional[int] = None
    company_name: str = Field(..., min_length=1)
    company_number: Optional[str] = None
    order_number: Optional[str] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    currency: str = "GBP"
    description: Optional[str] = None
    lines: List[InvoiceLineIn] = Field(..., min_length=1)
    tax_rate: Optional[Decimal] = Field(None, ge=0)
    tax_amount: Decimal = Field(Decimal("0"), ge=0)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    custom_fee: Decimal = Field(Decimal("0"), ge=0)
    custom_fee_description: Optional[str] = None
    payment_method: Optional[str] = None
    status: str = "pending"
    admin_notes: Optional[str] = None
    internal_notes: Optional[str] = None


class InvoiceUpdate(BaseModel):
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    billing_address: Optional[str] = None
    client_country: Optional[str] = None
    company_name: Optional[str] = None
    company_number: Optional[str] = None
    due_date: Optional[date] = None
    description: Optional[str] = None
    lines: Optional[List[InvoiceLineIn]] = None
    tax_rate: Optional[Decimal] = Field(None, ge=0)
    tax_amount: Optional[Decimal] = Field(None, ge=0)
    discount_amount: Optional[Decimal] = Field(None, ge=0)
    custom_fee: Optional[Decimal] = Field(None, ge=0)
    custom_fee_description: Optional[str] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    paid_amount: Optional[Decimal] = Field(None, ge=0)
    admin_notes: Optional[str] = None
    internal_notes: Optional[str] = None


class InvoiceOut(ORMModel):
    id: int
    invoice_number: str
    client_name: str
    client_email: str
    client_phone: Optional[str] = None
    billing_address: Optional[str] = None
    client_country: Optional[str] = None
    company_id: Optional[int] = None
    company_name: str
    company_number: Optional[str] = None
    order_number: Optional[str] = None
    invoice_date: date
    due_date: date
    currency: str
    description: Optional[str] = None
    subtotal: Decimal
    tax_rate: Optional[Decimal] = None
    tax_amount: Decimal
    discount_amount: Decimal
    custom_fee: Decimal
    custom_fee_description: Optional[str] = None
    amount: Decimal
    payment_method: Optional[str] = None
    status: str
    paid_date: Optional[date] = None
    paid_amount: Optional[Decimal] = None
    transaction_id: Optional[str] = None
    admin_notes: Optional[str] = None
    internal_notes: Optional[str] = None
    airtable_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    lines: List[InvoiceLineOut] = Field(default_factory=list)
    status_history: List[InvoiceStatusChangeOut] = Field(default_factory=list)
    attachments: List[InvoiceAttachmentOut] = Field(default_factory=list)

    @computed_field
    @property
    def display_status(self) -> str:
        return invoice_display_status(self.status, self.due_date)


class BulkStatusIn(BaseModel):
    invoice_ids: List[int] = Field(..., min_length=1)
    status: str
    reason: Optional[str] = None


class BulkStatusOut(BaseModel):
    updated: int
    skipped: int


class InvoiceAnalyticsOut(BaseModel):
    count: int
    total_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    overdue_amount: Decimal
    by_status: Dict[str, int]
    by_payment_method: Dict[str, int]


# ---------------------------------------------------------------------
# Services & service orders
# ---------------------------------------------------------------------
class FormFieldDef(BaseModel):
    name: str = Field(..., min_length=1)
    label: str = ""
    type: str = "text"
    required: bool = False
    placeholder: Optional[str] = None
    options: List[Dict[str, Any]] = Field(default_factory=list)


class ServiceIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    long_description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    currency: str = "USD"
    category: str = "Other"
    turnaround_days: Optional[int] = Field(None, ge=0)
    includes: List[str] = Field(default_factory=list)
    application_form_fields: List[FormFieldDef] = Field(default_factory=list)
    status: str = "active"


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    long_description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = None
    category: Optional[str] = None
    turnaround_days: Optional[int] = Field(None, ge=0)
    includes: Optional[List[str]] = None
    application_form_fields: Optional[List[FormFieldDef]] = None
    status: Optional[str] = None


class ServiceOut(ORMModel):
    id: int
    name: str
    description: str
    long_description: Optional[str] = None
    price: Decimal
    currency: str
    category: str
    turnaround_days: Optional[int] = None
    includes: List[str] = Field(default_factory=list)
    application_form_fields: List[FormFieldDef] = Field(default_factory=list)
    status: str


class ServiceOrderCreate(BaseModel):
    service_id: int
    customer_name: str = Field(..., min_length=1)
    customer_email: str = Field(..., min_length=3)
    customer_phone: Optional[str] = None
    application_data: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None


class ServiceOrderUpdate(BaseModel):
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    application_data: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None


class CommentIn(BaseModel):
    text: str = Field(..., min_length=1)
    author: str = "admin"
    is_admin_only: bool = False


class CommentOut(ORMModel):
    id: int
    author: str
    text: str
    is_admin_only: bool
    created_at: datetime


class ServiceOrderStatusChangeOut(ORMModel):
    id: int
    from_status: str
    to_status: str
    changed_date: datetime
    changed_by: str
    reason: Optional[str] = None


class ServiceOrderOut(ORMModel):
    id: int
    service_id: int
    service_name: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    amount: Decimal
    currency: str
    status: str
    application_data: Dict[str, Any] = Field(default_factory=dict)
    purchase_date: date
    completion_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    comments: List[CommentOut] = Field(default_factory=list)
    status_history: List[ServiceOrderStatusChangeOut] = Field(default_factory=list)


# ---------------------------------------------------------------------
# Transfer forms
# ---------------------------------------------------------------------
class TransferFormCreate(BaseModel):
    order_id: Optional[int] = None
    company_id: Optional[int] = None
    company_name: str = Field(..., min_length=1)
    company_number: str = ""
    country: Optional[str] = None
    incorporation_date: Optional[date] = None
    seller_name: Optional[str] = None
    seller_email: Optional[str] = None
    seller_phone: Optional[str] = None
    seller_address: Optional[str] = None
    buyer_name: Optional[str] = None
    buyer_email: Optional[str] = None
    buyer_phone: Optional[str] = None
    buyer_address: Optional[str] = None
    total_shares: int = Field(..., gt=0)
    total_share_capital: Decimal = Field(..., gt=0)
    shareholders: List[Dict[str, Any]] = Field(default_factory=list)
    directors: List[Dict[str, Any]] = Field(default_factory=list)


class TransferFormUpdate(BaseModel):
    seller_name: Optional[str] = None
    seller_email: Optional[str] = None
    seller_phone: Optional[str] = None
    seller_address: Optional[str] = None
    buyer_name: Optional[str] = None
    buyer_email: Optional[str] = None
    buyer_phone: Optional[str] = None
    buyer_address: Optional[str] = None
    shareholders: Optional[List[Dict[str, Any]]] = None
    directors: Optional[List[Dict[str, Any]]] = None
    admin_notes: Optional[str] = None


class TransferFormStatusChangeOut(ORMModel):
    id: int
    from_status: str
    to_status: str
    changed_date: datetime
    changed_by: str
    reason: Optional[str] = None
    notes: Optional[str] = None


class TransferFormAttachmentOut(ORMModel):
    id: int
    name: str
    content_type: str
    size: int
    uploaded_by: str
    uploaded_date: datetime


class DirectorIn(BaseModel):
    name: str = Field(..., min_length=1)
    date_of_birth: Optional[date] = None
    nationality: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    appointment_date: Optional[date] = None


class ShareholderIn(BaseModel):
    name: str = Field(..., min_length=1)
    nationality: str = ""
    address: str = ""
    city: str = ""
    country: str = ""
    shareholder_percentage: Decimal = Field(Decimal("0"), ge=0, le=100)
    shares: int = Field(0, ge=0)
    amount: Decimal = Field(Decimal("0"), ge=0)


class TransferFormOut(ORMModel):
    id: int
    form_number: str
    order_id: Optional[int] = None
    company_id: Optional[int] = None
    company_name: str
    company_number: str
    country: Optional[str] = None
    incorporation_date: Optional[date] = None
    seller_name: Optional[str] = None
    seller_email: Optional[str] = None
    buyer_name: Optional[str] = None
    buyer_email: Optional[str] = None
    total_shares: int
    total_share_capital: Decimal
    price_per_share: Decimal
    shareholders: List[Dict[str, Any]] = Field(default_factory=list)
    directors: List[Dict[str, Any]] = Field(default_factory=list)
    status: str
    completed_at: Optional[datetime] = None
    amendments_required_count: int
    last_amendment_date: Optional[datetime] = None
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    comments: List[CommentOut] = Field(default_factory=list)
    status_history: List[TransferFormStatusChangeOut] = Field(default_factory=list)
    attachments: List[TransferFormAttachmentOut] = Field(default_factory=list)


class TransferFormAnalyticsOut(BaseModel):
    total: int
    by_status: Dict[str, int]
    amendments_requested: int
    completed: int


# ---------------------------------------------------------------------
# Wallets
# ---------------------------------------------------------------------
class WalletOut(ORMModel):
    id: int
    user_id: str
    user_email: str
    user_name: Optional[str] = None
    balance: Decimal
    currency: str
    status: str
    created_at: datetime
    updated_at: datetime
    last_transaction_at: Optional[datetime] = None


class WalletTransactionOut(ORMModel):
    id: int
    wallet_id: int
    txn_type: str
    amount: Decimal
    currency: str
    balance_before: Decimal
    balance_after: Decimal
    reason: Optional[str] = None
    order_number: Optional[str] = None
    reference: Optional[str] = None
    created_at: datetime
    created_by: str


class WalletAmountIn(BaseModel):
    amount: Decimal
    reason: Optional[str] = None
    order_number: Optional[str] = None


class DeductOut(BaseModel):
    success: bool
    new_balance: Decimal
    transaction: WalletTransactionOut


class WalletReportOut(BaseModel):
    total_users: int
    total_balance: Decimal
    total_deposited: Decimal
    total_withdrawn: Decimal
    total_payments: Decimal
    currency: str


# ---------------------------------------------------------------------
# Support
# ---------------------------------------------------------------------
class SupportIn(BaseModel):
    full_name: str
    email: str
    company_name: Optional[str] = None
    inquiry_type: str = "general"
    message: str


class SupportOut(ORMModel):
    id: int
    full_name: str
    email: str
    company_name: Optional[str] = None
    inquiry_type: str
    message: str
    created_at: datetime


class WhatsAppNumber(BaseModel):
    id: Optional[str] = None
    label: str = ""
    number: str = Field(..., min_length=5)
    active: bool = True
    order: int = 1


class WhatsAppConfigIn(BaseModel):
    initial_message: str = Field(..., min_length=1)
    numbers: List[WhatsAppNumber] = Field(default_factory=list)


class WhatsAppConfigOut(BaseModel):
    initial_message: str
    numbers: List[WhatsAppNumber]


# ---------------------------------------------------------------------
# Users and roles
# ---------------------------------------------------------------------
class PermissionOut(BaseModel):
    id: str
    name: str
    description: str
    module: str


class RoleIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    permissions: List[str] = Field(default_factory=list)


class RoleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    permissions: Optional[List[str]] = None


class RoleOut(ORMModel):
    id: int
    slug: str
    name: str
    description: str
    permissions: List[str] = Field(default_factory=list)
    is_custom: bool
    created_at: datetime
    updated_at: datetime


class PermissionCheckOut(BaseModel):
    role: str
    permission: str
    allowed: bool


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3)
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None
    registration_date: Optional[date] = None
    notes: Optional[str] = None


class UserUpdate(BaseModel):
    email: Optional[str] = Field(None, min_length=3)
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None


class UserStatusIn(BaseModel):
    status: str


class UserNoteIn(BaseModel):
    note: str = Field(..., min_length=1)


class UserOut(ORMModel):
    id: int
    email: str
    name: str
    phone: Optional[str] = None
    company: Optional[str] = None
    account_status: str
    registration_date: date
    notes: Optional[str] = None
    role: Optional[RoleOut] = None
    created_at: datetime
    updated_at: datetime
