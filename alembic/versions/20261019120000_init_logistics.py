from alembic import op
import sqlalchemy as sa

revision = '20261019120000'
down_revision = None

NOW = sa.text("(now() at time zone 'utc')")


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=NOW),
    ]


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('first_name', sa.String(50), nullable=False),
        sa.Column('last_name', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20)),
        sa.Column('role', sa.String(32), nullable=False, server_default='customer'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('last_login', sa.DateTime()),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'shipments',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('tracking_number', sa.String(32), nullable=False),
        sa.Column('sender_name', sa.String(120), nullable=False),
        sa.Column('sender_phone', sa.String(20), nullable=False),
        sa.Column('sender_email', sa.String(255), nullable=False),
        sa.Column('sender_address', sa.Text(), nullable=False),
        sa.Column('recipient_name', sa.String(120), nullable=False),
        sa.Column('recipient_phone', sa.String(20), nullable=False),
        sa.Column('recipient_email', sa.String(255), nullable=False),
        sa.Column('recipient_address', sa.Text(), nullable=False),
        sa.Column('package_description', sa.Text(), nullable=False),
        sa.Column('package_weight', sa.Float(), nullable=False),
        sa.Column('package_dimensions', sa.JSON()),
        sa.Column('package_value', sa.Float(), nullable=False),
        sa.Column('package_type', sa.String(32), nullable=False, server_default='parcel'),
        sa.Column('service_type', sa.String(32), nullable=False),
        sa.Column('origin', sa.String(255), nullable=False),
        sa.Column('destination', sa.String(255), nullable=False),
        sa.Column('status', sa.String(32), nullable=False, server_default='Package Received'),
        sa.Column('tracking_history', sa.JSON(), nullable=False),
        sa.Column('estimated_delivery', sa.DateTime(), nullable=False),
        sa.Column('actual_delivery', sa.DateTime()),
        sa.Column('payment_status', sa.String(32), nullable=False, server_default='pending'),
        sa.Column('invoice_id', sa.String(32)),
        sa.Column('notification_phone_numbers', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text()),
        sa.Column('created_by', sa.String(32), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('updated_by', sa.String(32), sa.ForeignKey('users.id')),
        *_timestamps(),
    )
    op.create_index('ix_shipments_tracking_number', 'shipments', ['tracking_number'], unique=True)
    for col in ('sender_phone', 'sender_email', 'recipient_phone', 'recipient_email', 'invoice_id', 'created_by'):
        op.create_index(f'ix_shipments_{col}', 'shipments', [col])

    op.create_table(
        'invoices',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('invoice_number', sa.String(32), nullable=False),
        sa.Column('customer_id', sa.String(32), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('customer_name', sa.String(120), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(20), nullable=False),
        sa.Column('customer_address', sa.Text(), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('subtotal', sa.Float(), nullable=False, server_default='0'),
        sa.Column('tax', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total', sa.Float(), nullable=False, server_default='0'),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('due_date', sa.DateTime(), nullable=False),
        sa.Column('issue_date', sa.DateTime(), nullable=False, server_default=NOW),
        sa.Column('status', sa.String(32), nullable=False, server_default='pending'),
        sa.Column('payment_date', sa.DateTime()),
        sa.Column('payment_method', sa.String(32)),
        sa.Column('payment_reference', sa.String(64)),
        sa.Column('transfer_proof', sa.String(512)),
        sa.Column('shipment_id', sa.String(32)),
        sa.Column('notes', sa.Text()),
        sa.Column('admin_notes', sa.Text()),
        sa.Column('created_by', sa.String(32), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('updated_by', sa.String(32), sa.ForeignKey('users.id')),
        *_timestamps(),
    )
    op.create_index('ix_invoices_invoice_number', 'invoices', ['invoice_number'], unique=True)
    for col in ('customer_id', 'status', 'shipment_id'):
        op.create_index(f'ix_invoices_{col}', 'invoices', [col])

    op.create_table(
        'items',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.String(500)),
        sa.Column('category', sa.String(32), nullable=False, server_default='other'),
        sa.Column('weight', sa.Float(), nullable=False),
        sa.Column('dimensions', sa.JSON()),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('fragile', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('hazardous', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('requires_special_handling', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('special_handling_instructions', sa.Text()),
        sa.Column('barcode', sa.String(64)),
        sa.Column('shipment_id', sa.String(32), sa.ForeignKey('shipments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_by', sa.String(32), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_items_shipment_id', 'items', ['shipment_id'])


def downgrade():
    op.drop_table('items'); op.drop_table('invoices'); op.drop_table('shipments'); op.drop_table('users')
