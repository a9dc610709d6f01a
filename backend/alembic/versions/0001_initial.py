"""initial schema: users, fleet, trips, clients and seat reservations

Revision ID: 0001_initial
Revises: 
Create Date: 2026-09-28
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_table('buses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('type', sa.String(length=120), nullable=True),
        sa.Column('total_seats', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table('destinations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('country', sa.String(length=120), nullable=False, server_default='Brasil'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('bus_id', sa.Integer(), sa.ForeignKey('buses.id', ondelete='SET NULL'), nullable=True),
        sa.Column('travel_start', sa.Date(), nullable=True),
        sa.Column('travel_end', sa.Date(), nullable=True),
        sa.Column('departure_details', sa.String(length=255), nullable=True),
        sa.Column('return_details', sa.String(length=255), nullable=True),
        sa.Column('kids_policy', sa.String(length=8), nullable=True),
        sa.Column('whatsapp_group_link', sa.String(length=512), nullable=True),
        sa.Column('guides', sa.String(length=255), nullable=True),
        sa.Column('drivers', sa.String(length=255), nullable=True),
        sa.Column('bus_company', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_destinations_name', 'destinations', ['name'])
    op.create_table('clients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(length=120), nullable=False),
        sa.Column('last_name', sa.String(length=120), nullable=False),
        sa.Column('birthdate', sa.Date(), nullable=True),
        sa.Column('cpf', sa.String(length=32), nullable=True),
        sa.Column('rg', sa.String(length=32), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('destination_id', sa.Integer(), sa.ForeignKey('destinations.id', ondelete='SET NULL'), nullable=True),
        sa.Column('seat_number', sa.String(length=8), nullable=True),
        sa.Column('departure_location', sa.String(length=255), nullable=True),
        sa.Column('travel_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('discount_percentage', sa.Numeric(5, 2), nullable=True),
        sa.Column('approval_token', sa.String(length=64), nullable=True),
        sa.Column('approval_status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('approval_expires_at', sa.DateTime(), nullable=True),
        sa.Column('approval_date', sa.DateTime(), nullable=True),
        sa.Column('is_cancelled', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('created_by_email', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_clients_destination_id', 'clients', ['destination_id'])
    op.create_index('ix_clients_approval_token', 'clients', ['approval_token'], unique=True)
    op.create_table('children',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('birthdate', sa.Date(), nullable=True),
        sa.Column('cpf', sa.String(length=32), nullable=True),
        sa.Column('rg', sa.String(length=32), nullable=True),
        sa.Column('relationship', sa.String(length=32), nullable=False, server_default='outro'),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('seat_number', sa.String(length=8), nullable=True),
    )
    op.create_index('ix_children_client_id', 'children', ['client_id'])
    op.create_table('seat_reservations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('destination_id', sa.Integer(), sa.ForeignKey('destinations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('bus_id', sa.Integer(), sa.ForeignKey('buses.id'), nullable=False),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('child_id', sa.Integer(), sa.ForeignKey('children.id', ondelete='CASCADE'), nullable=True),
        sa.Column('client_name', sa.String(length=255), nullable=False),
        sa.Column('seat_number', sa.String(length=8), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='reserved'),
        sa.Column('is_child', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('reserved_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        # one passenger per seat per trip; the database is the arbiter of concurrent picks
        sa.UniqueConstraint('destination_id', 'seat_number', name='uq_destination_seat'),
    )
    op.create_index('ix_seat_reservations_destination_id', 'seat_reservations', ['destination_id'])
    op.create_index('ix_seat_reservations_client_id', 'seat_reservations', ['client_id'])

def downgrade():
    op.drop_index('ix_seat_reservations_client_id', table_name='seat_reservations')
    op.drop_index('ix_seat_reservations_destination_id', table_name='seat_reservations')
    op.drop_table('seat_reservations')
    op.drop_index('ix_children_client_id', table_name='children')
    op.drop_table('children')
    op.drop_index('ix_clients_approval_token', table_name='clients')
    op.drop_index('ix_clients_destination_id', table_name='clients')
    op.drop_table('clients')
    op.drop_index('ix_destinations_name', table_name='destinations')
    op.drop_table('destinations')
    op.drop_table('buses')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
