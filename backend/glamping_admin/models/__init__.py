"""ORM models package export."""

from glamping_admin.models.booking import (
    Booking,
    BookingDiscount,
    BookingItem,
    BookingPayment,
    BookingProduct,
    BookingStatus,
    BookingStatusHistory,
    PaymentStatus,
)
from glamping_admin.models.catalog import (
    Category,
    DynamicPricingMode,
    EventPricingType,
    EventType,
    Item,
    ItemPrice,
    Parameter,
    PricingEvent,
    PricingMode,
    PricingRate,
    pricing_event_items,
)
from glamping_admin.models.customer import Customer
from glamping_admin.models.discount import (
    ApplicationType,
    Discount,
    DiscountCategory,
    DiscountScope,
    DiscountType,
)
from glamping_admin.models.menu import MenuItem
from glamping_admin.models.notification import Notification
from glamping_admin.models.user import ZONE_RESTRICTED_ROLES, User, UserRole, UserZone
from glamping_admin.models.zone import (
    CommissionType,
    DepositType,
    Zone,
    ZoneSettingsHistory,
)

__all__ = [
    "ApplicationType",
    "Booking",
    "BookingDiscount",
    "BookingItem",
    "BookingPayment",
    "BookingProduct",
    "BookingStatus",
    "BookingStatusHistory",
    "Category",
    "CommissionType",
    "Customer",
    "DepositType",
    "Discount",
    "DiscountCategory",
    "DiscountScope",
    "DiscountType",
    "DynamicPricingMode",
    "EventPricingType",
    "EventType",
    "Item",
    "ItemPrice",
    "MenuItem",
    "Notification",
    "Parameter",
    "PaymentStatus",
    "PricingEvent",
    "PricingMode",
    "PricingRate",
    "User",
    "UserRole",
    "UserZone",
    "ZONE_RESTRICTED_ROLES",
    "Zone",
    "ZoneSettingsHistory",
    "pricing_event_items",
]
