from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='courier'),
        sa.Column('phone_number', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("role in ('admin', 'courier')", name='ck_profiles_role'),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'])

    op.create_table(
        'customers',
        sa.Column('id', sa.Uuid(), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('phone_number', sa.String(length=32), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('assigned_courier_id', sa.Uuid(), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
    )
    op.create_index('ix_customers_name', 'customers', ['name'])
    op.create_index('ix_customers_is_active', 'customers', ['is_active'])

    op.create_table(
        'call_logs',
        sa.Column('id', sa.Uuid(), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('customer_id', sa.Uuid(), sa.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('customer_name', sa.String(length=200), nullable=True),
        sa.Column('customer_phone_masked', sa.String(length=16), nullable=True),
        sa.Column('courier_id', sa.Uuid(), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('agent_name', sa.String(length=200), nullable=True),
        sa.Column('call_status', sa.String(length=40), nullable=False, server_default='attempted'),
        sa.Column('call_timestamp', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('call_duration', sa.Integer(), nullable=True),
        sa.Column('twilio_call_sid', sa.String(length=64), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('twilio_call_sid', name='uq_call_logs_twilio_call_sid'),
        sa.CheckConstraint(
            "call_duration is null or call_status = 'completed'",
            name='ck_call_logs_duration_completed',
        ),
    )
    op.create_index('ix_call_logs_customer_id', 'call_logs', ['customer_id'])
    op.create_index('ix_call_logs_courier_id', 'call_logs', ['courier_id'])
    op.create_index('ix_call_logs_call_status', 'call_logs', ['call_status'])
    op.create_index('ix_call_logs_call_timestamp', 'call_logs', ['call_timestamp'])
    op.create_index('ix_call_logs_status_timestamp', 'call_logs', ['call_status', 'call_timestamp'])

    op.create_table(
        'archived_calls',
        sa.Column('id', sa.Uuid(), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('original_call_log_id', sa.Uuid(), nullable=True),
        sa.Column('customer_id', sa.Uuid(), nullable=True),
        sa.Column('customer_name', sa.String(length=200), nullable=True),
        sa.Column('customer_phone_masked', sa.String(length=16), nullable=True),
        sa.Column('courier_id', sa.Uuid(), nullable=True),
        sa.Column('agent_name', sa.String(length=200), nullable=True),
        sa.Column('call_status', sa.String(length=40), nullable=False),
        sa.Column('call_timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('call_duration', sa.Integer(), nullable=True),
        sa.Column('twilio_call_sid', sa.String(length=64), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('archive_date', sa.Date(), nullable=False),
    )
    op.create_index('ix_archived_calls_archive_date', 'archived_calls', ['archive_date'])

    op.create_table(
        'settings',
        sa.Column('id', sa.Uuid(), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('key', sa.String(length=100), nullable=False, unique=True),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_by', sa.Uuid(), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
    )
    settings_table = sa.table(
        'settings',
        sa.column('key', sa.String),
        sa.column('value', sa.Text),
        sa.column('description', sa.Text),
    )
    op.bulk_insert(settings_table, [
        {'key': 'incoming_call_message',
         'value': 'This number is for outbound calls only. Please wait for our agent to call you.',
         'description': 'Message played to callers who dial the business number'},
        {'key': 'daily_reset_time', 'value': '00:00', 'description': 'Daily archive/reset time (HH:MM)'},
        {'key': 'daily_reset_timezone', 'value': 'Asia/Jerusalem', 'description': 'Timezone of daily_reset_time'},
        {'key': 'last_reset_date', 'value': '', 'description': 'Date of the last archive/reset'},
    ])

def downgrade() -> None:
    op.drop_table('settings')
    op.drop_index('ix_archived_calls_archive_date', table_name='archived_calls')
    op.drop_table('archived_calls')
    op.drop_index('ix_call_logs_status_timestamp', table_name='call_logs')
    op.drop_index('ix_call_logs_call_timestamp', table_name='call_logs')
    op.drop_index('ix_call_logs_call_status', table_name='call_logs')
    op.drop_index('ix_call_logs_courier_id', table_name='call_logs')
    op.drop_index('ix_call_logs_customer_id', table_name='call_logs')
    op.drop_table('call_logs')
    op.drop_index('ix_customers_is_active', table_name='customers')
    op.drop_index('ix_customers_name', table_name='customers')
    op.drop_table('customers')
    op.drop_index('ix_profiles_email', table_name='profiles')
    op.drop_table('profiles')
