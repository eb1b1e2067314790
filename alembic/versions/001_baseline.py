"""001_baseline

Baseline migration capturing the DispatchFlow schema: customers,
employees, the vehicle catalog, orders with their items, and the
per-order workflow tracking records.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ORDER_STATUSES = (
    "cart-not-paid",
    "order-made-not-paid",
    "pay-not-confirmed",
    "order-confirmed",
    "order-not-picked",
    "issue-customer",
    "customer-confirmed",
    "order-refunded",
    "picking-order",
    "allocated-driver",
    "assigned-dispatch-officer-2",
    "ready-to-pickup",
    "order-not-pickedup",
    "order-picked-up",
    "on-way",
    "driver-confirmed",
    "order-processed",
    "refund",
    "complain-order",
    "issue-driver",
    "parcel-returned",
    "order-complete",
)

TABLES_WITH_TRIGGERS = [
    "customers",
    "employees",
    "vehicle_types",
    "orders",
    "order_items",
    "workflow_tracking",
]


def _enum_sql(name: str, values: Sequence[str]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"CREATE TYPE {name} AS ENUM ({quoted})"


def upgrade() -> None:
    # ------------------------------------------------------------------
    # Extensions
    # ------------------------------------------------------------------
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ------------------------------------------------------------------
    # Enum types (stored by value)
    # ------------------------------------------------------------------
    op.execute(_enum_sql("order_status", ORDER_STATUSES))
    op.execute(_enum_sql("packing_status", ("pending", "packed", "unavailable")))
    op.execute(_enum_sql("tracking_priority", ("low", "medium", "high")))

    # ------------------------------------------------------------------
    # Tables (dependency order)
    # ------------------------------------------------------------------

    # --- customers ---
    op.execute("""
        CREATE TABLE customers (
            id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name VARCHAR(200) NOT NULL,
            phone VARCHAR(20),
            email VARCHAR(100),
            created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # --- employees ---
    op.execute("""
        CREATE TABLE employees (
            id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id VARCHAR(50) NOT NULL,
            name VARCHAR(100) NOT NULL,
            phone VARCHAR(20),
            email VARCHAR(100),
            roles JSONB NOT NULL DEFAULT '[]'::jsonb,
            is_activated BOOLEAN NOT NULL DEFAULT TRUE,
            is_blocked BOOLEAN NOT NULL DEFAULT FALSE,
            current_assignments INTEGER NOT NULL DEFAULT 0,
            max_assignments INTEGER NOT NULL DEFAULT 5,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            CONSTRAINT ck_employees_current_assignments_non_negative
                CHECK (current_assignments >= 0)
        )
    """)
    op.execute("CREATE UNIQUE INDEX ix_employees_employee_id ON employees(employee_id)")

    # --- vehicle_types ---
    op.execute("""
        CREATE TABLE vehicle_types (
            id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            vehicle_type VARCHAR(50) NOT NULL,
            category VARCHAR(50),
            display_name VARCHAR(100),
            max_weight DECIMAL(10, 2) NOT NULL,
            max_volume DECIMAL(10, 2),
            max_height DECIMAL(6, 2),
            max_length DECIMAL(6, 2),
            max_width DECIMAL(6, 2),
            capacity_limit_percent INTEGER NOT NULL DEFAULT 80,
            max_packages INTEGER NOT NULL,
            priority INTEGER NOT NULL DEFAULT 100,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)
    op.execute(
        "CREATE UNIQUE INDEX ix_vehicle_types_vehicle_type ON vehicle_types(vehicle_type)"
    )

    # --- orders ---
    op.execute("""
        CREATE TABLE orders (
            id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            order_id VARCHAR(50) NOT NULL,
            customer_id UUID REFERENCES customers(id),
            status order_status NOT NULL DEFAULT 'cart-not-paid',
            total_amount DECIMAL(12, 2) NOT NULL DEFAULT 0,
            delivery_address JSONB,
            delivery_date TIMESTAMP WITH TIME ZONE,
            time_slot VARCHAR(50),
            special_instructions TEXT,
            packing_details JSONB,
            storage_details JSONB,
            assignment_details JSONB,
            loading_details JSONB,
            route_details JSONB,
            delivery_details JSONB,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)
    op.execute("CREATE UNIQUE INDEX ix_orders_order_id ON orders(order_id)")
    op.execute("CREATE INDEX ix_orders_status ON orders(status)")

    # --- order_items ---
    op.execute("""
        CREATE TABLE order_items (
            id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            order_pk UUID NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            product_id VARCHAR(50),
            product_name VARCHAR(200),
            quantity INTEGER NOT NULL DEFAULT 1,
            weight VARCHAR(50),
            unit_price DECIMAL(12, 2),
            packing_status packing_status NOT NULL DEFAULT 'pending',
            packed BOOLEAN NOT NULL DEFAULT FALSE,
            packed_at TIMESTAMP WITH TIME ZONE,
            packed_by JSONB,
            storage_verified BOOLEAN NOT NULL DEFAULT FALSE,
            storage_verified_at TIMESTAMP WITH TIME ZONE,
            storage_verified_by JSONB,
            storage_condition VARCHAR(50),
            loading_verified BOOLEAN NOT NULL DEFAULT FALSE,
            loading_verified_at TIMESTAMP WITH TIME ZONE,
            loading_verified_by JSONB,
            loading_notes TEXT,
            complaints JSONB NOT NULL DEFAULT '[]'::jsonb,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)
    op.execute("CREATE INDEX ix_order_items_order_pk ON order_items(order_pk)")

    # --- workflow_tracking ---
    op.execute("""
        CREATE TABLE workflow_tracking (
            id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            order_id VARCHAR(50) NOT NULL REFERENCES orders(order_id),
            customer_id UUID REFERENCES customers(id),
            current_status VARCHAR(50) NOT NULL,
            priority tracking_priority NOT NULL DEFAULT 'medium',
            workflow_status JSONB NOT NULL,
            order_snapshot JSONB,
            timing_metrics JSONB,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            last_reconciled_at TIMESTAMP WITH TIME ZONE,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)
    op.execute(
        "CREATE UNIQUE INDEX ix_workflow_tracking_order_id ON workflow_tracking(order_id)"
    )
    op.execute(
        "CREATE INDEX ix_workflow_tracking_customer_id ON workflow_tracking(customer_id)"
    )
    op.execute(
        "CREATE INDEX ix_workflow_tracking_current_status "
        "ON workflow_tracking(current_status)"
    )

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = CURRENT_TIMESTAMP;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
    """)

    for table in TABLES_WITH_TRIGGERS:
        op.execute(
            f"CREATE TRIGGER update_{table}_updated_at "
            f"BEFORE UPDATE ON {table} "
            f"FOR EACH ROW EXECUTE FUNCTION update_updated_at_column()"
        )


def downgrade() -> None:
    for table in TABLES_WITH_TRIGGERS:
        op.execute(f"DROP TRIGGER IF EXISTS update_{table}_updated_at ON {table}")

    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    # ------------------------------------------------------------------
    # Drop tables (reverse dependency order)
    # ------------------------------------------------------------------
    op.execute("DROP TABLE IF EXISTS workflow_tracking CASCADE")
    op.execute("DROP TABLE IF EXISTS order_items CASCADE")
    op.execute("DROP TABLE IF EXISTS orders CASCADE")
    op.execute("DROP TABLE IF EXISTS vehicle_types CASCADE")
    op.execute("DROP TABLE IF EXISTS employees CASCADE")
    op.execute("DROP TABLE IF EXISTS customers CASCADE")

    # ------------------------------------------------------------------
    # Drop enum types
    # ------------------------------------------------------------------
    op.execute("DROP TYPE IF EXISTS tracking_priority")
    op.execute("DROP TYPE IF EXISTS packing_status")
    op.execute("DROP TYPE IF EXISTS order_status")
