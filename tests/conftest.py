"""Shared fixtures and utilities for tests."""

import os

# Settings are read at import time, so the environment must be set first.
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["APP_ENV"] = "test"
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("CELERY_BROKER_URL", "redis://localhost:6379/1")
os.environ.setdefault("CELERY_RESULT_BACKEND", "redis://localhost:6379/2")
os.environ.setdefault("JSON_LOGS", "false")

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from api.services import applications as application_service
from api.services import interviews as interview_service
from api.services import jobs as job_service
from api.services.interviews import PanelMember
from core.integrations.notifier import Notifier
from core.locks import LocalInterviewerLocks
from core.permissions import Actor, Role
from core.policy import CompanyPolicy
from core.workflow.requisition import JobAction, JobVisibility
from database.engine import Base
from database.models import applications, interviews, jobs  # noqa: F401


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite so concurrent sessions get their own connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'pipeline.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def policy():
    return CompanyPolicy()


@pytest.fixture
def locks():
    return LocalInterviewerLocks(bucket_minutes=60, timeout_seconds=2.0)


@pytest.fixture
def notifier():
    """Enabled notifier whose sender records calls instead of enqueueing."""
    sender = MagicMock()
    notifier = Notifier(enabled=True, webhook_url="https://hooks.test/pipeline", sender=sender)
    notifier.sender = sender
    return notifier


@pytest.fixture
def admin():
    return Actor(actor_id=1, role=Role.ADMIN, verified_staff=True)


@pytest.fixture
def hr():
    return Actor(actor_id=2, role=Role.HR, verified_staff=True)


@pytest.fixture
def hiring_manager():
    return Actor(actor_id=3, role=Role.HIRING_MANAGER, verified_staff=True)


@pytest.fixture
def recruiter():
    return Actor(actor_id=4, role=Role.RECRUITER, verified_staff=True)


@pytest.fixture
def candidate():
    return Actor(actor_id=100, role=Role.CANDIDATE)


@pytest.fixture
def other_candidate():
    return Actor(actor_id=101, role=Role.CANDIDATE)


@pytest.fixture
def interviewer_a():
    return Actor(actor_id=10, role=Role.HIRING_MANAGER, verified_staff=True)


@pytest.fixture
def interviewer_b():
    return Actor(actor_id=11, role=Role.RECRUITER, verified_staff=True)


@pytest.fixture
def monday_10am():
    """A fixed future slot, far from any bucket boundary."""
    return datetime(2030, 3, 4, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def job_factory(session, hr, policy):
    """Create jobs and drive them through submit and approve."""

    async def make_open_job(visibility=JobVisibility.PUBLIC, title="Backend Engineer"):
        job = await job_service.create_job(
            session,
            hr,
            title=title,
            description="Build and run the hiring platform",
            location="Remote",
            department="Engineering",
            visibility=visibility,
        )
        await job_service.apply_job_action(session, hr, job.id, JobAction.SUBMIT, policy)
        return await job_service.apply_job_action(
            session, hr, job.id, JobAction.APPROVE, policy
        )

    return make_open_job


@pytest_asyncio.fixture
async def open_job(job_factory):
    return await job_factory()


@pytest_asyncio.fixture
async def application(session, open_job, candidate):
    return await application_service.apply_to_job(session, candidate, open_job.id)


@pytest_asyncio.fixture
async def interview(session, application, hr, locks, interviewer_a, interviewer_b, monday_10am):
    return await interview_service.schedule_interview(
        session,
        hr,
        locks,
        application_id=application.id,
        panel=[
            PanelMember(interviewer_a.actor_id),
            PanelMember(interviewer_b.actor_id),
        ],
        scheduled_at=monday_10am,
        duration_minutes=60,
    )