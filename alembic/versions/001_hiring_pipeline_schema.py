"""Create hiring pipeline tables

Revision ID: 001_hiring_pipeline_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_hiring_pipeline_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    """Create requisition, application and interview tables."""
    op.create_table(
        'jobs',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('department', sa.String(length=255), nullable=True),
        sa.Column('hiring_manager_id', sa.BigInteger(), nullable=True),
        sa.Column('positions', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('visibility', sa.String(length=50), nullable=False),
        sa.Column('submitted_by', sa.BigInteger(), nullable=True),
        _timestamp('submitted_at'),
        sa.Column('approved_by', sa.BigInteger(), nullable=True),
        _timestamp('approved_at'),
        sa.Column('rejected_by', sa.BigInteger(), nullable=True),
        _timestamp('rejected_at'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        _timestamp('opened_at'),
        _timestamp('paused_at'),
        _timestamp('closed_at'),
        _timestamp('filled_at'),
        _timestamp('cancelled_at'),
        sa.Column('created_by', sa.BigInteger(), nullable=False),
        _timestamp('created_at', nullable=False),
        _timestamp('updated_at', nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_jobs_title', 'jobs', ['title'])
    op.create_index('ix_jobs_status', 'jobs', ['status'])
    op.create_index('ix_jobs_hiring_manager_id', 'jobs', ['hiring_manager_id'])
    op.create_index('idx_jobs_status_visibility', 'jobs', ['status', 'visibility'])

    op.create_table(
        'applications',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('candidate_id', sa.BigInteger(), nullable=False),
        sa.Column('job_id', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('cover_letter', sa.Text(), nullable=True),
        sa.Column('resume_url', sa.String(length=1000), nullable=True),
        _timestamp('withdrawn_at'),
        sa.Column('withdrawn_reason', sa.Text(), nullable=True),
        _timestamp('rejected_at'),
        sa.Column('rejected_by', sa.BigInteger(), nullable=True),
        sa.Column('match_score', sa.Float(), nullable=True),
        sa.Column('match_summary', sa.Text(), nullable=True),
        sa.Column('scoring_status', sa.String(length=50), nullable=False),
        _timestamp('applied_at', nullable=False),
        _timestamp('updated_at', nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('candidate_id', 'job_id', name='uq_application_candidate_job'),
    )
    op.create_index('ix_applications_candidate_id', 'applications', ['candidate_id'])
    op.create_index('ix_applications_job_id', 'applications', ['job_id'])
    op.create_index('ix_applications_status', 'applications', ['status'])
    op.create_index('idx_applications_job_status', 'applications', ['job_id', 'status'])

    op.create_table(
        'application_status_history',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('application_id', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('actor_id', sa.BigInteger(), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        _timestamp('changed_at', nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ondelete='RESTRICT'),
    )
    op.create_index(
        'ix_application_status_history_application_id',
        'application_status_history',
        ['application_id'],
    )

    op.create_table(
        'interviews',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('application_id', sa.BigInteger(), nullable=False),
        sa.Column('job_id', sa.BigInteger(), nullable=False),
        sa.Column('candidate_id', sa.BigInteger(), nullable=False),
        sa.Column('round', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('interview_type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('location', sa.String(length=500), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False),
        _timestamp('scheduled_at', nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        _timestamp('ends_at', nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=False, server_default='UTC'),
        sa.Column('candidate_response', sa.String(length=50), nullable=False),
        _timestamp('responded_at'),
        sa.Column('response_note', sa.Text(), nullable=True),
        sa.Column('decision', sa.String(length=50), nullable=True),
        sa.Column('decided_by', sa.BigInteger(), nullable=True),
        _timestamp('decided_at'),
        sa.Column('decision_notes', sa.Text(), nullable=True),
        _timestamp('cancelled_at'),
        sa.Column('cancelled_by', sa.BigInteger(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('created_by', sa.BigInteger(), nullable=False),
        _timestamp('created_at', nullable=False),
        _timestamp('updated_at', nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id']),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
    )
    op.create_index('ix_interviews_application_id', 'interviews', ['application_id'])
    op.create_index('ix_interviews_job_id', 'interviews', ['job_id'])
    op.create_index('ix_interviews_candidate_id', 'interviews', ['candidate_id'])
    op.create_index('ix_interviews_status', 'interviews', ['status'])
    op.create_index('idx_interviews_window', 'interviews', ['scheduled_at', 'ends_at'])
    op.create_index(
        'idx_interviews_application_round', 'interviews', ['application_id', 'round']
    )

    op.create_table(
        'interview_participants',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('interview_id', sa.BigInteger(), nullable=False),
        sa.Column('interviewer_id', sa.BigInteger(), nullable=False),
        sa.Column('role_in_panel', sa.String(length=50), nullable=False),
        sa.Column('confirmed', sa.Boolean(), nullable=False, server_default='false'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['interview_id'], ['interviews.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('interview_id', 'interviewer_id', name='uq_interview_participant'),
    )
    op.create_index(
        'ix_interview_participants_interviewer_id',
        'interview_participants',
        ['interviewer_id'],
    )

    op.create_table(
        'interview_feedback',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('interview_id', sa.BigInteger(), nullable=False),
        sa.Column('interviewer_id', sa.BigInteger(), nullable=False),
        sa.Column('submitted_by', sa.BigInteger(), nullable=False),
        sa.Column('ratings', sa.JSON(), nullable=False),
        sa.Column('recommendation', sa.String(length=50), nullable=False),
        sa.Column('strengths', sa.Text(), nullable=True),
        sa.Column('areas_of_improvement', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('private_notes', sa.Text(), nullable=True),
        _timestamp('submitted_at', nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['interview_id'], ['interviews.id'], ondelete='CASCADE'),
        sa.UniqueConstraint(
            'interview_id', 'interviewer_id', name='uq_interview_feedback_interviewer'
        ),
    )
    op.create_index(
        'ix_interview_feedback_interviewer_id', 'interview_feedback', ['interviewer_id']
    )

    op.create_table(
        'interview_reschedules',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('interview_id', sa.BigInteger(), nullable=False),
        _timestamp('previous_time', nullable=False),
        _timestamp('new_time', nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('requested_by', sa.BigInteger(), nullable=False),
        _timestamp('requested_at', nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['interview_id'], ['interviews.id'], ondelete='CASCADE'),
    )
    op.create_index(
        'ix_interview_reschedules_interview_id', 'interview_reschedules', ['interview_id']
    )

    op.create_table(
        'interview_decision_audit',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('interview_id', sa.BigInteger(), nullable=False),
        sa.Column('previous_decision', sa.String(length=50), nullable=True),
        sa.Column('new_decision', sa.String(length=50), nullable=False),
        sa.Column('actor_id', sa.BigInteger(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _timestamp('decided_at', nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['interview_id'], ['interviews.id'], ondelete='CASCADE'),
    )
    op.create_index(
        'ix_interview_decision_audit_interview_id',
        'interview_decision_audit',
        ['interview_id'],
    )


def downgrade() -> None:
    """Drop hiring pipeline tables in dependency order."""
    op.drop_table('interview_decision_audit')
    op.drop_table('interview_reschedules')
    op.drop_table('interview_feedback')
    op.drop_table('interview_participants')
    op.drop_table('interviews')
    op.drop_table('application_status_history')
    op.drop_table('applications')
    op.drop_table('jobs')
