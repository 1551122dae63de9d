"""Registro inicial: roles, establecimientos, profesionales, pacientes,
ledger clínico, consentimientos, revisiones, auditoría y estado del sistema

Revision ID: 0001_initial_registry
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001_initial_registry'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    role_enum = sa.Enum(
        'ADMIN', 'FACILITY', 'PRACTITIONER', 'INDIVIDUAL', name='role',
    )
    reviewstatus_enum = sa.Enum(
        'NONE', 'PENDING', 'GRANTED', 'REJECTED', 'CANCELLED', name='reviewstatus',
    )

    # 1. Roles
    op.create_table(
        'role_assignments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('principal', sa.String(length=66), nullable=False),
        sa.Column('role', role_enum, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('granted_by', sa.String(length=66), nullable=True,
                  comment='Admin que otorgó el rol (null = génesis)'),
        sa.Column('granted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('principal', 'role', name='uq_role_assignment_principal_role'),
    )
    op.create_index('idx_role_assignment_role', 'role_assignments', ['role', 'is_active'])

    # 2. Establecimientos y profesionales
    op.create_table(
        'facilities',
        sa.Column('id', sa.String(length=66), nullable=False,
                  comment='Principal del establecimiento'),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('registration_number', sa.String(length=100), nullable=False,
                  comment='Número de registro sanitario (no único)'),
        sa.Column('doctor_count', sa.Integer(), nullable=False),
        sa.Column('patient_count', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_facilities_registration_number'), 'facilities', ['registration_number'],
    )

    op.create_table(
        'practitioners',
        sa.Column('id', sa.String(length=66), nullable=False,
                  comment='Principal del profesional'),
        sa.Column('facility_id', sa.String(length=66), nullable=False),
        sa.Column('license_number', sa.String(length=100), nullable=False,
                  comment='Número de colegiatura / licencia'),
        sa.Column('name', sa.String(length=200), nullable=True),
        sa.Column('specialization', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['facility_id'], ['facilities.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_practitioner_facility', 'practitioners', ['facility_id', 'is_active'])

    # 3. Pacientes
    op.create_table(
        'individuals',
        sa.Column('id', sa.String(length=66), nullable=False,
                  comment='Principal del paciente'),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('date_of_birth', sa.String(length=20), nullable=False,
                  comment='Fecha tal como la declara el paciente'),
        sa.Column('blood_group', sa.String(length=5), nullable=False,
                  comment='A+, A-, B+, B-, O+, O-, AB+, AB-'),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    # 4. Ledger clínico + índices por paciente y por doctor
    op.create_table(
        'medical_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('patient_id', sa.String(length=66), nullable=False,
                  comment='Principal del paciente (no se exige que esté registrado)'),
        sa.Column('doctor_id', sa.String(length=66), nullable=False),
        sa.Column('diagnosis', sa.Text(), nullable=False),
        sa.Column('symptoms', postgresql.JSONB(astext_type=sa.Text()), nullable=False,
                  comment='Síntomas en el orden registrado'),
        sa.Column('prescription', sa.Text(), nullable=False),
        sa.Column('treatment_plan', sa.Text(), nullable=False),
        sa.Column('external_doc_pointer', sa.String(length=255), nullable=False,
                  comment='Puntero opaco (p. ej. CID) al almacén de documentos'),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['doctor_id'], ['practitioners.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_record_patient', 'medical_records', ['patient_id', 'id'])
    op.create_index('idx_record_doctor', 'medical_records', ['doctor_id', 'id'])
    op.create_index('idx_record_doctor_patient', 'medical_records', ['doctor_id', 'patient_id'])

    # 5. Consentimientos
    op.create_table(
        'consent_grants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('patient_id', sa.String(length=66), nullable=False,
                  comment='Paciente dueño del consentimiento'),
        sa.Column('grantee_id', sa.String(length=66), nullable=False,
                  comment='Principal autorizado a leer'),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('granted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('patient_id', 'grantee_id', name='uq_consent_patient_grantee'),
    )
    op.create_index('idx_consent_grantee', 'consent_grants', ['grantee_id', 'is_active'])

    # 6. Solicitudes de revisión + contadores
    op.create_table(
        'review_applications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('patient_id', sa.String(length=66), nullable=False),
        sa.Column('insurer_id', sa.String(length=66), nullable=False),
        sa.Column('status', reviewstatus_enum, nullable=False),
        sa.Column('reason', sa.String(length=500), nullable=False),
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('patient_id', 'insurer_id', name='uq_review_patient_insurer'),
    )
    op.create_index('idx_review_insurer_status', 'review_applications', ['insurer_id', 'status'])

    op.create_table(
        'review_totals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('pending', sa.Integer(), nullable=False),
        sa.Column('granted', sa.Integer(), nullable=False),
        sa.Column('rejected', sa.Integer(), nullable=False),
        sa.Column('cancelled', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.execute(
        "INSERT INTO review_totals (id, pending, granted, rejected, cancelled) "
        "VALUES (1, 0, 0, 0, 0)"
    )

    # 7. Auditoría y estado del sistema
    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('actor', sa.String(length=66), nullable=False,
                  comment='Principal que ejecutó la operación'),
        sa.Column('entity', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=140), nullable=False,
                  comment='Clave del registro afectado'),
        sa.Column('action', sa.String(length=30), nullable=False),
        sa.Column('old_data', postgresql.JSONB(astext_type=sa.Text()), nullable=True,
                  comment='Snapshot antes del cambio'),
        sa.Column('new_data', postgresql.JSONB(astext_type=sa.Text()), nullable=True,
                  comment='Snapshot después del cambio'),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_audit_log_actor'), 'audit_log', ['actor'])
    op.create_index(op.f('ix_audit_log_entity'), 'audit_log', ['entity'])
    op.create_index(op.f('ix_audit_log_action'), 'audit_log', ['action'])
    op.create_index('idx_audit_entity', 'audit_log', ['entity', 'entity_id'])

    op.create_table(
        'system_state',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('paused', sa.Boolean(), nullable=False),
        sa.Column('changed_by', sa.String(length=66), nullable=True),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.execute(
        "INSERT INTO system_state (id, paused, changed_at) VALUES (1, false, now())"
    )


def downgrade() -> None:
    op.drop_table('system_state')
    op.drop_index('idx_audit_entity', table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_action'), table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_entity'), table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_actor'), table_name='audit_log')
    op.drop_table('audit_log')
    op.drop_table('review_totals')
    op.drop_index('idx_review_insurer_status', table_name='review_applications')
    op.drop_table('review_applications')
    op.drop_index('idx_consent_grantee', table_name='consent_grants')
    op.drop_table('consent_grants')
    op.drop_index('idx_record_doctor_patient', table_name='medical_records')
    op.drop_index('idx_record_doctor', table_name='medical_records')
    op.drop_index('idx_record_patient', table_name='medical_records')
    op.drop_table('medical_records')
    op.drop_table('individuals')
    op.drop_index('idx_practitioner_facility', table_name='practitioners')
    op.drop_table('practitioners')
    op.drop_index(op.f('ix_facilities_registration_number'), table_name='facilities')
    op.drop_table('facilities')
    op.drop_index('idx_role_assignment_role', table_name='role_assignments')
    op.drop_table('role_assignments')

    sa.Enum(name='reviewstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='role').drop(op.get_bind(), checkfirst=True)
