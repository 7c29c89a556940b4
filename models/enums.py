"""
models/enums.py
---------------
Enumerated domain values shared by the database schema and application code.
Each class maps one-to-one onto a PostgreSQL ENUM type of the same name.
"""

from enum import Enum


class CompanyStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    CUSTOMER = "CUSTOMER"


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class PaymentStatus(str, Enum):
    INITIATED = "INITIATED"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, Enum):
    CARD = "CARD"
    CASH = "CASH"
    BANK = "BANK"


class InvoiceStatus(str, Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"
    PARTIAL = "PARTIAL"


# PostgreSQL type name -> Python enum, in declaration order
SCHEMA_ENUMS: dict[str, type[Enum]] = {
    "company_status": CompanyStatus,
    "user_role": UserRole,
    "booking_status": BookingStatus,
    "payment_status": PaymentStatus,
    "payment_method": PaymentMethod,
    "invoice_status": InvoiceStatus,
}
