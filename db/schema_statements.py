"""
db/schema_statements.py
-----------------------
The declared schema of the booking platform, as an ordered list of
idempotent statements.

Order matters:
- extensions and enum types come before any table that uses them
- companies (the tenant root) comes before everything scoped to a tenant
- referenced tables come before referencing tables:
  companies -> users -> bookings -> payments / invoices / audit_logs
- indexes come last
"""

from enum import Enum

from db.errors import SchemaOrderError
from models.enums import SCHEMA_ENUMS
from models.schema import SchemaStatement, StatementKind


def extension(name: str) -> SchemaStatement:
    return SchemaStatement(StatementKind.EXTENSION, name)


def enum_type(name: str, values: type[Enum]) -> SchemaStatement:
    """Build a CREATE TYPE ... AS ENUM statement from a Python enum."""
    labels = ", ".join(f"'{member.value}'" for member in values)
    return SchemaStatement(StatementKind.ENUM, name, labels)


def table(name: str, columns: str, depends_on: tuple[str, ...] = ()) -> SchemaStatement:
    return SchemaStatement(StatementKind.TABLE, name, columns.strip("\n"), depends_on)


def index(name: str, on_table: str, columns: str) -> SchemaStatement:
    return SchemaStatement(StatementKind.INDEX, name, f"{on_table}({columns})", (on_table,))


EXTENSIONS = (
    extension("uuid-ossp"),
)

ENUM_TYPES = tuple(enum_type(name, values) for name, values in SCHEMA_ENUMS.items())

# Companies are the tenants: every other row carries company_id
COMPANIES = table("companies", """
    id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    name            VARCHAR(255) NOT NULL,
    status          company_status NOT NULL DEFAULT 'ACTIVE',
    created_at      TIMESTAMP DEFAULT NOW(),
    updated_at      TIMESTAMP DEFAULT NOW(),
    deleted_at      TIMESTAMP
""", depends_on=("uuid-ossp", "company_status"))

# Email is unique across all tenants
USERS = table("users", """
    id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    company_id      UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
    name            VARCHAR(150) NOT NULL,
    email           VARCHAR(150) UNIQUE NOT NULL,
    password_hash   TEXT NOT NULL,
    role            user_role NOT NULL DEFAULT 'CUSTOMER',
    is_active       BOOLEAN DEFAULT TRUE,
    created_at      TIMESTAMP DEFAULT NOW(),
    updated_at      TIMESTAMP DEFAULT NOW(),
    deleted_at      TIMESTAMP
""", depends_on=("uuid-ossp", "companies", "user_role"))

BOOKINGS = table("bookings", """
    id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    company_id      UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
    created_by      UUID NOT NULL REFERENCES users(id),
    customer_name   VARCHAR(150) NOT NULL,
    service_name    VARCHAR(150) NOT NULL,
    start_time      TIMESTAMP NOT NULL,
    end_time        TIMESTAMP NOT NULL,
    status          booking_status NOT NULL DEFAULT 'PENDING',
    total_price     NUMERIC(10,2) NOT NULL,
    created_at      TIMESTAMP DEFAULT NOW(),
    updated_at      TIMESTAMP DEFAULT NOW(),
    deleted_at      TIMESTAMP,
    CONSTRAINT booking_time_check CHECK (end_time > start_time)
""", depends_on=("uuid-ossp", "companies", "users", "booking_status"))

PAYMENTS = table("payments", """
    id                      UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    company_id              UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
    booking_id              UUID NOT NULL REFERENCES bookings(id) ON DELETE CASCADE,
    amount                  NUMERIC(10,2) NOT NULL,
    payment_method          payment_method NOT NULL,
    status                  payment_status NOT NULL DEFAULT 'INITIATED',
    transaction_reference   VARCHAR(255),
    created_at              TIMESTAMP DEFAULT NOW(),
    updated_at              TIMESTAMP DEFAULT NOW()
""", depends_on=("uuid-ossp", "companies", "bookings", "payment_method", "payment_status"))

# One invoice per booking
INVOICES = table("invoices", """
    id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    company_id      UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
    booking_id      UUID UNIQUE NOT NULL REFERENCES bookings(id) ON DELETE CASCADE,
    invoice_number  VARCHAR(100) UNIQUE NOT NULL,
    total_amount    NUMERIC(10,2) NOT NULL,
    status          invoice_status NOT NULL DEFAULT 'UNPAID',
    issued_at       TIMESTAMP DEFAULT NOW()
""", depends_on=("uuid-ossp", "companies", "bookings", "invoice_status"))

# Append-only; user_id stays nullable for system actions
AUDIT_LOGS = table("audit_logs", """
    id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    company_id      UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
    user_id         UUID REFERENCES users(id),
    action          VARCHAR(100) NOT NULL,
    entity          VARCHAR(100) NOT NULL,
    entity_id       UUID,
    old_value       JSONB,
    new_value       JSONB,
    created_at      TIMESTAMP DEFAULT NOW()
""", depends_on=("uuid-ossp", "companies", "users"))

TABLES = (COMPANIES, USERS, BOOKINGS, PAYMENTS, INVOICES, AUDIT_LOGS)

INDEXES = (
    index("idx_users_company_id", "users", "company_id"),
    index("idx_bookings_company_id", "bookings", "company_id"),
    index("idx_bookings_status", "bookings", "status"),
    index("idx_payments_booking_id", "payments", "booking_id"),
    index("idx_audit_logs_company_id", "audit_logs", "company_id"),
)

SCHEMA_STATEMENTS: tuple[SchemaStatement, ...] = EXTENSIONS + ENUM_TYPES + TABLES + INDEXES


def validate_order(statements) -> None:
    """
    Check that every statement only depends on objects declared before it.

    Raises:
        SchemaOrderError: On a forward reference, an unknown dependency,
            or a name declared twice.
    """
    declared: set[str] = set()
    for position, statement in enumerate(statements, start=1):
        missing = [dep for dep in statement.depends_on if dep not in declared]
        if missing:
            raise SchemaOrderError(
                f"{statement} (position {position}) depends on "
                f"{', '.join(missing)}, which is not declared before it"
            )
        if statement.name in declared:
            raise SchemaOrderError(f"{statement} is declared more than once")
        declared.add(statement.name)
