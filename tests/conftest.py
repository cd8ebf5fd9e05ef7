"""Shared test fixtures for the InvestFlow API test suite."""

import uuid
from collections.abc import AsyncGenerator
from decimal import Decimal
from typing import Any, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from investflow.api.deps import get_event_dispatcher
from investflow.core.db import get_db
from investflow.core.security import create_access_token
from investflow.main import app
from investflow.models import Base, PlanStatus, Project, ProjectStatus, User, UserRole

ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
FREE_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
BASIC_ID = uuid.UUID("00000000-0000-0000-0000-000000000003")
PLUS_ID = uuid.UUID("00000000-0000-0000-0000-000000000004")
PREMIUM_ID = uuid.UUID("00000000-0000-0000-0000-000000000005")


class RecordingDispatcher:
    """Stands in for InvestmentEventDispatcher; records instead of scheduling."""

    def __init__(self) -> None:
        self.events: list[tuple[str, uuid.UUID, uuid.UUID]] = []

    def investment_confirmed(self, user: User, project: Project, investment: Any) -> None:
        self.events.append(("confirmed", user.id, investment.id))

    def investment_cancelled(self, user: User, project: Project, investment: Any) -> None:
        self.events.append(("cancelled", user.id, investment.id))


# ── Database ─────────────────────────────────────────────────────────────────


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'investflow.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session


# ── Sample data ──────────────────────────────────────────────────────────────


def make_user(
    user_id: uuid.UUID,
    plan_key: str,
    role: UserRole = UserRole.INVESTOR,
    plan_status: PlanStatus = PlanStatus.ACTIVE,
) -> User:
    return User(
        id=user_id,
        email=f"{plan_key}-{user_id.hex[-4:]}@example.com",
        name=f"{plan_key.title()} User",
        role=role,
        plan_key=plan_key,
        plan_status=plan_status,
    )


@pytest.fixture
async def users(db: AsyncSession) -> dict[str, User]:
    users = {
        "admin": make_user(ADMIN_ID, "premium", role=UserRole.ADMIN),
        "free": make_user(FREE_ID, "free"),
        "basic": make_user(BASIC_ID, "basic"),
        "plus": make_user(PLUS_ID, "plus"),
        "premium": make_user(PREMIUM_ID, "premium"),
    }
    db.add_all(users.values())
    await db.commit()
    return users


async def create_project(
    db: AsyncSession,
    owner: User,
    *,
    title: str = "Solar Farm",
    description: str = "Community solar installation",
    category: str = "Energy",
    min_investment: str = "100",
    roi_percent: str = "20",
    target_amount: str = "1000",
    funded_amount: str = "0",
    total_investors: int = 0,
    duration_months: int = 12,
    status: ProjectStatus = ProjectStatus.ACTIVE,
    is_premium: bool = False,
    created_at: Optional[Any] = None,
) -> Project:
    project = Project(
        title=title,
        description=description,
        category=category,
        min_investment=Decimal(min_investment),
        roi_percent=Decimal(roi_percent),
        target_amount=Decimal(target_amount),
        funded_amount=Decimal(funded_amount),
        total_investors=total_investors,
        duration_months=duration_months,
        status=status,
        is_premium=is_premium,
        created_by=owner.id,
    )
    if created_at is not None:
        project.created_at = created_at
    db.add(project)
    await db.commit()
    return project


@pytest.fixture
async def nearly_funded_project(db: AsyncSession, users: dict[str, User]) -> Project:
    """min 100, roi 20%, target 1000, funded 900, 12 months, active."""
    return await create_project(db, users["admin"], funded_amount="900", total_investors=3)


# ── HTTP ─────────────────────────────────────────────────────────────────────


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
async def client(db: AsyncSession, dispatcher: RecordingDispatcher) -> AsyncGenerator[AsyncClient]:
    async def _override_db():
        yield db

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_event_dispatcher] = lambda: dispatcher
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
