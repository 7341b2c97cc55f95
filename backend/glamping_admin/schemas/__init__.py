"""Schema exports."""

from glamping_admin.schemas.booking import (
    BalanceRead,
    BookingCreate,
    BookingItemRead,
    BookingLineCreate,
    BookingProductCreate,
    BookingRead,
    BookingSummaryRead,
    BookingUpdate,
    PaymentCreate,
    PaymentRead,
    StatusHistoryRead,
    TaxInvoiceToggle,
    VoucherApply,
)
from glamping_admin.schemas.catalog import (
    ItemRead,
    MenuItemCreate,
    MenuItemRead,
    MenuItemUpdate,
)
from glamping_admin.schemas.customer import CustomerRead
from glamping_admin.schemas.discount import (
    DiscountCreate,
    DiscountRead,
    DiscountUpdate,
    VoucherValidateRequest,
    VoucherValidateResponse,
)
from glamping_admin.schemas.pricing import PricingQuoteRead, PricingQuoteRequest
from glamping_admin.schemas.report import SalesReportRead
from glamping_admin.schemas.zone import (
    ZoneRead,
    ZoneSettingsHistoryRead,
    ZoneSettingsRead,
    ZoneSettingsUpdate,
)

__all__ = [
    "BalanceRead",
    "BookingCreate",
    "BookingItemRead",
    "BookingLineCreate",
    "BookingProductCreate",
    "BookingRead",
    "BookingSummaryRead",
    "BookingUpdate",
    "CustomerRead",
    "DiscountCreate",
    "DiscountRead",
    "DiscountUpdate",
    "ItemRead",
    "MenuItemCreate",
    "MenuItemRead",
    "MenuItemUpdate",
    "PaymentCreate",
    "PaymentRead",
    "PricingQuoteRead",
    "PricingQuoteRequest",
    "SalesReportRead",
    "StatusHistoryRead",
    "TaxInvoiceToggle",
    "VoucherApply",
    "VoucherValidateRequest",
    "VoucherValidateResponse",
    "ZoneRead",
    "ZoneSettingsHistoryRead",
    "ZoneSettingsRead",
    "ZoneSettingsUpdate",
]
