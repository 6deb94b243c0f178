"""Initial migration - users, quizzes, questions and attempts

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ENUMS = {
    'role_enum': ('faculty', 'student'),
    'quiz_type_enum': ('graded-quiz', 'practice-quiz', 'graded-survey', 'ungraded-survey'),
    'show_correct_answers_enum': ('immediately', 'after-due-date', 'never'),
    'question_type_enum': ('multiple-choice', 'true-false', 'fill-in-blank'),
    'attempt_status_enum': ('in-progress', 'submitted'),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*_ENUMS[name], name=name, create_type=False)


def upgrade() -> None:
    # ── Create enums ──────────────────────────────────────────────────
    for name, values in _ENUMS.items():
        labels = ", ".join(f"'{v}'" for v in values)
        op.execute(f"""
            DO $$ BEGIN
                CREATE TYPE {name} AS ENUM ({labels});
            EXCEPTION WHEN duplicate_object THEN null;
            END $$;
        """)

    # ── users table ───────────────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('role', _enum('role_enum'), nullable=False, server_default='student'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # ── quizzes table ─────────────────────────────────────────────────
    op.create_table(
        'quizzes',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('course_id', sa.String(100), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('quiz_type', _enum('quiz_type_enum'), nullable=False, server_default='graded-quiz'),
        sa.Column('assignment_group', sa.String(100), nullable=False, server_default='Quizzes'),
        sa.Column('shuffle_answers', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('time_limit_minutes', sa.Integer(), nullable=True),
        sa.Column('multiple_attempts', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('max_attempts', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('show_correct_answers', _enum('show_correct_answers_enum'), nullable=False, server_default='immediately'),
        sa.Column('access_code', sa.String(100), nullable=True),
        sa.Column('one_question_at_a_time', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('webcam_required', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('lock_questions_after_answering', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('available_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('until_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('published', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_by', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_quizzes_course_id', 'quizzes', ['course_id'])
    op.create_index('ix_quizzes_published', 'quizzes', ['published'])

    # ── quiz_questions table ──────────────────────────────────────────
    op.create_table(
        'quiz_questions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('quiz_id', sa.UUID(), nullable=False),
        sa.Column('question_id', sa.String(64), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('question_type', _enum('question_type_enum'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False, server_default=''),
        sa.Column('text', sa.Text(), nullable=False, server_default=''),
        sa.Column('points', sa.Float(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('quiz_id', 'question_id', name='uq_quiz_question'),
    )

    # ── attempts table ────────────────────────────────────────────────
    op.create_table(
        'attempts',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('quiz_id', sa.UUID(), nullable=False),
        sa.Column('student_id', sa.UUID(), nullable=False),
        sa.Column('attempt_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('status', _enum('attempt_status_enum'), nullable=False, server_default='in-progress'),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('time_limit_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('score', sa.Float(), nullable=True),
        sa.Column('answers', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_attempts_quiz_id', 'attempts', ['quiz_id'])
    op.create_index('ix_attempts_student_id', 'attempts', ['student_id'])
    op.create_index(
        'uq_attempt_in_progress',
        'attempts',
        ['quiz_id', 'student_id'],
        unique=True,
        postgresql_where=sa.text("status = 'in-progress'"),
    )

    # ── attempt_answers table ─────────────────────────────────────────
    op.create_table(
        'attempt_answers',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('attempt_id', sa.UUID(), nullable=False),
        sa.Column('question_id', sa.String(64), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('answer', sa.Text(), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('points_earned', sa.Float(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['attempt_id'], ['attempts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('attempt_answers')
    op.drop_index('uq_attempt_in_progress', table_name='attempts')
    op.drop_index('ix_attempts_student_id', table_name='attempts')
    op.drop_index('ix_attempts_quiz_id', table_name='attempts')
    op.drop_table('attempts')
    op.drop_table('quiz_questions')
    op.drop_index('ix_quizzes_published', table_name='quizzes')
    op.drop_index('ix_quizzes_course_id', table_name='quizzes')
    op.drop_table('quizzes')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    for name in reversed(list(_ENUMS)):
        op.execute(f"DROP TYPE IF EXISTS {name}")
