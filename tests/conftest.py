"""
Test Configuration
==================

Pytest fixtures for Attest tests.

Transactional tests run against an in-memory SQLite database (aiosqlite)
created fresh for every test.
"""

import os
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["AUDIT_ENABLED"] = "true"

from services.assessment_workflow.models import (  # noqa: E402
    AssessmentModel,
    AssessmentResponseModel,
    OrganizationModel,
    OwnerRef,
    UserModel,
    WorkflowLogModel,
)
from services.assessment_workflow.seed import seed_roles  # noqa: E402
from services.assessment_workflow.services import (  # noqa: E402
    Actor,
    AuditEntry,
    AuditRecorder,
    MembershipService,
    ResponseService,
    Role,
    WorkflowService,
)
from services.assessment_workflow.status import AssessmentStatus, ResponseStatus  # noqa: E402
from shared.config import settings  # noqa: E402
from shared.database import Base, create_session_factory  # noqa: E402


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


# =============================================================================
# Database
# =============================================================================


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


# =============================================================================
# Seed data
# =============================================================================


@dataclass
class World:
    """Seeded tenants and users."""

    master: OrganizationModel
    acme: OrganizationModel
    globex: OrganizationModel
    super_admin: UserModel
    acme_admin: UserModel
    acme_user: UserModel
    globex_admin: UserModel

    @staticmethod
    def actor(user: UserModel) -> Actor:
        return Actor.from_user(user)


async def _add_user(
    session: AsyncSession,
    roles: dict[str, Any],
    organization: OrganizationModel,
    name: str,
    role: Role,
) -> UserModel:
    user = UserModel(
        organization_id=organization.id,
        name=name,
        email=f"{name.lower().replace(' ', '.')}@{organization.name.lower()}.test",
        roles=[roles[role.value]],
        direct_permissions=[],
    )
    session.add(user)
    await session.flush()
    return user


@pytest_asyncio.fixture
async def world(session_factory: async_sessionmaker[AsyncSession]) -> World:
    """Master organization with a super admin, plus two tenants with admins."""
    async with session_factory() as session, session.begin():
        roles = await seed_roles(session)

        master = OrganizationModel(name=settings.organization.master_name)
        acme = OrganizationModel(name="Acme")
        globex = OrganizationModel(name="Globex")
        session.add_all([master, acme, globex])
        await session.flush()

        super_admin = await _add_user(session, roles, master, "Root", Role.SUPER_ADMIN)
        acme_admin = await _add_user(session, roles, acme, "Alice Admin", Role.ORGANIZATION_ADMIN)
        acme_user = await _add_user(session, roles, acme, "Bob User", Role.ORGANIZATION_USER)
        globex_admin = await _add_user(session, roles, globex, "Gina Admin", Role.ORGANIZATION_ADMIN)

    return World(
        master=master,
        acme=acme,
        globex=globex,
        super_admin=super_admin,
        acme_admin=acme_admin,
        acme_user=acme_user,
        globex_admin=globex_admin,
    )


@pytest.fixture
def add_user(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[UserModel]]:
    """Factory adding a user with one role to an organization."""

    async def _add(organization: OrganizationModel, name: str, role: Role) -> UserModel:
        async with session_factory() as session, session.begin():
            roles = await seed_roles(session)
            return await _add_user(session, roles, organization, name, role)

    return _add


@pytest.fixture
def create_assessment(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[tuple[AssessmentModel, list[AssessmentResponseModel]]]]:
    """Factory creating an assessment with one response per given status."""

    async def _create(
        organization: OrganizationModel,
        status: AssessmentStatus = AssessmentStatus.ACTIVE,
        responses: Sequence[ResponseStatus] = (ResponseStatus.ACTIVE,),
    ) -> tuple[AssessmentModel, list[AssessmentResponseModel]]:
        async with session_factory() as session, session.begin():
            assessment = AssessmentModel(
                organization_id=organization.id,
                standard_id=uuid.uuid4(),
                name="Q1 2025 Audit",
                period_value="Q1 2025",
                status=status,
            )
            session.add(assessment)
            await session.flush()

            items = [
                AssessmentResponseModel(
                    assessment_id=assessment.id,
                    requirement_id=uuid.uuid4(),
                    status=response_status,
                )
                for response_status in responses
            ]
            session.add_all(items)
        return assessment, items

    return _create


@pytest.fixture
def fetch(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Awaitable[Any]]:
    """Re-read a row in a fresh session."""

    async def _fetch(model: type, identifier: uuid.UUID) -> Any:
        async with session_factory() as session:
            return await session.get(model, identifier)

    return _fetch


@pytest.fixture
def log_count(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Awaitable[int]]:
    """Number of workflow log rows, optionally for one owner."""

    async def _count(owner: OwnerRef | None = None) -> int:
        stmt = select(func.count(WorkflowLogModel.id))
        if owner is not None:
            stmt = stmt.where(
                WorkflowLogModel.owner_type == owner.kind,
                WorkflowLogModel.owner_id == owner.id,
            )
        async with session_factory() as session:
            return int(await session.scalar(stmt) or 0)

    return _count


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def audit_entries() -> list[AuditEntry]:
    """Entries published by the audit recorder."""
    return []


@pytest.fixture
def recorder(audit_entries: list[AuditEntry]) -> AuditRecorder:
    return AuditRecorder(sink=audit_entries.append, enabled=True)


@pytest.fixture
def workflow_service(
    session_factory: async_sessionmaker[AsyncSession],
    recorder: AuditRecorder,
) -> WorkflowService:
    return WorkflowService(session_factory, recorder=recorder)


@pytest.fixture
def membership_service(
    session_factory: async_sessionmaker[AsyncSession],
    recorder: AuditRecorder,
) -> MembershipService:
    return MembershipService(session_factory, recorder=recorder)


@pytest.fixture
def response_service(
    session_factory: async_sessionmaker[AsyncSession],
    recorder: AuditRecorder,
) -> ResponseService:
    return ResponseService(session_factory, recorder=recorder)


# =============================================================================
# HTTP
# =============================================================================


@pytest_asyncio.fixture
async def assessment_workflow_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Assessment Workflow Service."""
    from services.assessment_workflow.main import app
    from shared.database import get_session_factory

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[UserModel], dict[str, str]]:
    """Bearer headers for a seeded user."""
    from shared.auth import create_access_token

    def _headers(user: UserModel) -> dict[str, str]:
        token = create_access_token(
            {
                "sub": str(user.id),
                "email": user.email,
                "organization_id": str(user.organization_id),
            }
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
