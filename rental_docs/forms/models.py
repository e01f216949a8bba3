"""
Canonical document data shapes.

Every value here is immutable. One DocumentData (or StandaloneContractData)
is built per generation request, consumed by an assembler, then dropped.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple

from ..core.business import BusinessConfig, DEFAULT_CONFIG


@dataclass(frozen=True)
class LineItem:
    name: str
    unit_price: Decimal
    quantity: int
    sku: str = ""


@dataclass(frozen=True)
class ProjectInfo:
    name: str
    start_date: str
    end_date: str
    day_count: int = 1
    company_tax_id: str = ""
    pickup_contact_name: str = ""
    pickup_contact_phone: str = ""
    pickup_contact_tax_id: str = ""
    comments: str = ""


@dataclass(frozen=True)
class BillingParty:
    first_name: str
    last_name: str
    email: str
    phone: str = ""
    company_name: str = ""
    address: str = ""
    city: str = ""
    tax_id: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class ShippingInfo:
    method_label: str
    total: Decimal
    delivery_method: str = "shipping"     # 'pickup' | 'shipping'
    shipping_address: str = ""
    shipping_phone: str = ""

    @property
    def is_pickup(self) -> bool:
        return self.delivery_method == "pickup"


@dataclass(frozen=True)
class CouponInfo:
    code: str
    discount_amount: Decimal


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal
    deposit: Decimal

    @property
    def discounted_subtotal(self) -> Decimal:
        return self.subtotal - self.discount

    @property
    def balance(self) -> Decimal:
        return self.total - self.deposit


@dataclass(frozen=True)
class DocumentData:
    """Order-keyed envelope for the quote, contract and processing variants.

    `totals` is not a constructor argument: it is always computed from the
    line items, the day count and the coupon discount.
    """
    document_id: int
    billing: BillingParty
    project: ProjectInfo
    line_items: Tuple[LineItem, ...]
    status: str
    coupon: Optional[CouponInfo] = None
    shipping: Optional[ShippingInfo] = None
    counterparty_signature_url: str = ""
    config: BusinessConfig = field(default=DEFAULT_CONFIG, compare=False, repr=False)
    totals: Totals = field(init=False)

    def __post_init__(self):
        from .calculations import TotalsCalculator
        object.__setattr__(self, "line_items", tuple(self.line_items))
        totals = TotalsCalculator(self.config).compute(
            self.line_items, self.project.day_count, self.discount)
        object.__setattr__(self, "totals", totals)

    @property
    def discount(self) -> Decimal:
        return self.coupon.discount_amount if self.coupon else Decimal("0")


@dataclass(frozen=True)
class StandaloneContractData:
    """Customer-keyed envelope for the standalone rental contract."""
    user_id: int
    contract_number: str
    first_name: str
    last_name: str
    email: str
    tax_id: str = ""
    address: str = ""
    city: str = ""
    country: str = ""
    phone: str = ""
    customer_type: str = "natural"        # 'natural' | 'empresa'
    company_name: str = ""
    company_tax_id: str = ""
    signature_url: str = ""
    id_front_url: str = ""
    id_back_url: str = ""
    company_registration_url: str = ""
    terms_accepted: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_company(self) -> bool:
        return self.customer_type == "empresa"

    @property
    def has_attachments(self) -> bool:
        return any((self.id_front_url, self.id_back_url, self.signature_url,
                    self.company_registration_url))
