"""Seed database with demo users (one per plan) and projects."""

import asyncio
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from investflow.core.config import settings
from investflow.core.db import _ensure_async_url
from investflow.core.plan_features import PLAN_ORDER
from investflow.core.security import create_access_token
from investflow.models.models import PlanStatus, Project, User, UserRole, utcnow

ADMIN_EMAIL = "admin@investflow.dev"

DEMO_PROJECTS = [
    {
        "title": "Solar Farm Expansion",
        "description": "Adds 40MW of photovoltaic capacity to an existing solar park.",
        "category": "Renewable Energy",
        "min_investment": Decimal("100"),
        "roi_percent": Decimal("12.5"),
        "target_amount": Decimal("250000"),
        "duration_months": 36,
    },
    {
        "title": "Downtown Co-Working Hub",
        "description": "Renovation of a historic building into flexible office space.",
        "category": "Real Estate",
        "min_investment": Decimal("500"),
        "roi_percent": Decimal("8"),
        "target_amount": Decimal("1200000"),
        "duration_months": 60,
    },
    {
        "title": "Vertical Farming Pilot",
        "description": "Hydroponic vertical farm supplying local grocery chains.",
        "category": "Agriculture",
        "min_investment": Decimal("250"),
        "roi_percent": Decimal("15"),
        "target_amount": Decimal("400000"),
        "duration_months": 24,
    },
    {
        "title": "Fintech Seed Round",
        "description": "Early-stage payments startup raising its seed round.",
        "category": "Technology",
        "min_investment": Decimal("1000"),
        "roi_percent": Decimal("35"),
        "target_amount": Decimal("750000"),
        "duration_months": 48,
        "is_premium": True,
    },
    {
        "title": "Wind Turbine Retrofit",
        "description": "Replaces gearboxes on a 20-turbine coastal wind farm.",
        "category": "Renewable Energy",
        "min_investment": Decimal("200"),
        "roi_percent": Decimal("10"),
        "target_amount": Decimal("500000"),
        "duration_months": 30,
        "is_premium": True,
    },
]


async def seed_users(session: AsyncSession) -> User:
    """Create an admin plus one investor per plan; return the admin."""
    users = [(ADMIN_EMAIL, "Platform Admin", UserRole.ADMIN, "premium")]
    users += [
        (f"{plan}@investflow.dev", f"{plan.title()} Investor", UserRole.INVESTOR, plan)
        for plan in PLAN_ORDER
    ]

    admin = None
    for email, name, role, plan_key in users:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user:
            print(f"✓ User already exists: {email}")
        else:
            user = User(
                email=email,
                name=name,
                role=role,
                plan_key=plan_key,
                plan_status=PlanStatus.ACTIVE,
                plan_renewal=utcnow() + timedelta(days=30),
            )
            session.add(user)
            await session.flush()
            print(f"✓ Created user: {email} ({plan_key})")
        print(f"  token: {create_access_token({'sub': str(user.id)})}")
        if role == UserRole.ADMIN:
            admin = user

    await session.commit()
    return admin


async def seed_projects(session: AsyncSession, owner: User) -> None:
    for project_data in DEMO_PROJECTS:
        result = await session.execute(select(Project).where(Project.title == project_data["title"]))
        if result.scalar_one_or_none():
            print(f"✓ Project already exists: {project_data['title']}")
            continue
        session.add(Project(created_by=owner.id, start_date=utcnow(), **project_data))
        print(f"✓ Created project: {project_data['title']}")

    await session.commit()


async def main() -> None:
    """Run all seed operations."""
    print("🌱 Seeding database...")

    engine = create_async_engine(_ensure_async_url(settings.DATABASE_URL), echo=False)
    async_session = async_sessionmaker(engine, expire_on_commit=False)

    async with async_session() as session:
        admin = await seed_users(session)
        await seed_projects(session, admin)

    await engine.dispose()

    print("✅ Database seeding completed!")


if __name__ == "__main__":
    asyncio.run(main())
