"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Creates all database tables for the Student Feedback Platform:
- students: Student records with the public student ID and grade label
- subjects / grades: Per-student subjects and their numeric marks
- attendance: One counter row per student
- behavioral_notes: Append-only notes
- feedback: Append-only generated feedback history

Every child table cascades on student (or subject) deletion.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Students Table ────────────────────────────────────────
    op.create_table(
        'students',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('student_id', sa.String(64), nullable=False),
        sa.Column('grade', sa.String(2), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_students_student_id', 'students', ['student_id'], unique=True)

    # ── Subjects Table ────────────────────────────────────────
    op.create_table(
        'subjects',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('student_id', sa.String(36),
                  sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('performance', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_subjects_student_id', 'subjects', ['student_id'])

    # ── Grades Table ──────────────────────────────────────────
    op.create_table(
        'grades',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('subject_id', sa.String(36),
                  sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.CheckConstraint('value >= 0', name='ck_grades_value_non_negative'),
    )
    op.create_index('ix_grades_subject_id', 'grades', ['subject_id'])

    # ── Attendance Table ──────────────────────────────────────
    op.create_table(
        'attendance',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('student_id', sa.String(36),
                  sa.ForeignKey('students.id', ondelete='CASCADE'),
                  nullable=False, unique=True),
        sa.Column('present', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('absent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('late', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.CheckConstraint('present >= 0 AND absent >= 0 AND late >= 0',
                           name='ck_attendance_counters_non_negative'),
    )

    # ── Behavioral Notes Table ────────────────────────────────
    op.create_table(
        'behavioral_notes',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('student_id', sa.String(36),
                  sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_behavioral_notes_student_id', 'behavioral_notes', ['student_id'])

    # ── Feedback Table ────────────────────────────────────────
    op.create_table(
        'feedback',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('student_id', sa.String(36),
                  sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('generated_by', sa.Text(), nullable=False),
        sa.Column('feedback_type', sa.String(32), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_feedback_student_id', 'feedback', ['student_id'])
    op.create_index('ix_feedback_created_at', 'feedback', ['created_at'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index('ix_feedback_created_at', table_name='feedback')
    op.drop_index('ix_feedback_student_id', table_name='feedback')
    op.drop_table('feedback')
    op.drop_index('ix_behavioral_notes_student_id', table_name='behavioral_notes')
    op.drop_table('behavioral_notes')
    op.drop_table('attendance')
    op.drop_index('ix_grades_subject_id', table_name='grades')
    op.drop_table('grades')
    op.drop_index('ix_subjects_student_id', table_name='subjects')
    op.drop_table('subjects')
    op.drop_index('ix_students_student_id', table_name='students')
    op.drop_table('students')
