"""Tests for the investment ledger."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select, update

from investflow.database.project_repo import ProjectRepository
from investflow.models import (
    Investment,
    InvestmentStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Project,
    ProjectStatus,
)
from investflow.services.investment_service import InvestmentService
from investflow.utils.exceptions import (
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)

from tests.conftest import RecordingDispatcher, create_project


@pytest.fixture
def service(db, dispatcher) -> InvestmentService:
    return InvestmentService(db, dispatcher)


async def _reload_project(db, project_id) -> Project:
    return await ProjectRepository.get_by_id(db, project_id)


async def _completed_total(db, project_id) -> Decimal:
    result = await db.execute(
        select(func.coalesce(func.sum(Investment.amount), 0)).where(
            Investment.project_id == project_id,
            Investment.status == InvestmentStatus.COMPLETED,
        )
    )
    return Decimal(str(result.scalar_one()))


async def _age_investment(db, investment_id, hours: int) -> None:
    await db.execute(
        update(Investment)
        .where(Investment.id == investment_id)
        .values(investment_date=datetime.now(timezone.utc) - timedelta(hours=hours))
    )
    await db.commit()


# ── invest ───────────────────────────────────────────────────────────────────


async def test_invest_completes_nearly_funded_project(db, service, users, nearly_funded_project, dispatcher):
    investment = await service.invest(
        users["free"], nearly_funded_project.id, Decimal("100"), PaymentMethod.STRIPE
    )

    assert investment.status == InvestmentStatus.COMPLETED
    assert investment.expected_return == Decimal("120.00")
    assert investment.transaction_id == f"INV-{investment.id}"

    project = await _reload_project(db, nearly_funded_project.id)
    assert project.funded_amount == Decimal("1000")
    assert project.total_investors == 4
    assert project.status == ProjectStatus.COMPLETED
    assert project.progress_percent == 100.0

    assert dispatcher.events == [("confirmed", users["free"].id, investment.id)]


async def test_invest_sets_expected_return_date_in_calendar_months(db, service, users):
    project = await create_project(db, users["admin"], duration_months=12)
    investment = await service.invest(users["free"], project.id, Decimal("250"), PaymentMethod.PAYPAL)

    expected = investment.investment_date.replace(year=investment.investment_date.year + 1)
    assert investment.expected_return_date.date() == expected.date()


async def test_invest_records_succeeded_payment(db, service, users, nearly_funded_project):
    investment = await service.invest(
        users["basic"], nearly_funded_project.id, Decimal("100"), PaymentMethod.WALLET
    )
    payment = (
        await db.execute(select(Payment).where(Payment.investment_id == investment.id))
    ).scalar_one()
    assert payment.status == PaymentStatus.SUCCEEDED
    assert payment.transaction_id == investment.transaction_id
    assert payment.amount == Decimal("100")
    assert payment.currency == "USD"
    assert payment.method == "wallet"


@pytest.mark.parametrize("amount", ["101", "150"])
async def test_invest_over_headroom_names_remaining(service, users, nearly_funded_project, amount):
    with pytest.raises(ValidationException) as exc_info:
        await service.invest(users["free"], nearly_funded_project.id, Decimal(amount), PaymentMethod.STRIPE)
    assert exc_info.value.message == (
        "Investment amount exceeds remaining target. Maximum you can invest: $100"
    )


async def test_invest_below_minimum(service, users, nearly_funded_project):
    with pytest.raises(ValidationException) as exc_info:
        await service.invest(users["free"], nearly_funded_project.id, Decimal("50"), PaymentMethod.STRIPE)
    assert exc_info.value.message == "Minimum investment amount is $100"
    assert exc_info.value.details == [{"field": "amount", "message": exc_info.value.message}]


async def test_invest_unknown_project(service, users):
    with pytest.raises(NotFoundException) as exc_info:
        await service.invest(users["free"], uuid.uuid4(), Decimal("100"), PaymentMethod.STRIPE)
    assert exc_info.value.message == "Project not found"


async def test_invest_in_closed_project(db, service, users):
    project = await create_project(db, users["admin"], status=ProjectStatus.CLOSED)
    with pytest.raises(InvalidStateException) as exc_info:
        await service.invest(users["free"], project.id, Decimal("100"), PaymentMethod.STRIPE)
    assert exc_info.value.message == "This project is not accepting investments at the moment"


async def test_invest_in_fully_funded_active_project(db, service, users):
    project = await create_project(db, users["admin"], funded_amount="1000")
    with pytest.raises(InvalidStateException) as exc_info:
        await service.invest(users["free"], project.id, Decimal("100"), PaymentMethod.STRIPE)
    assert exc_info.value.message == "This project is fully funded"


async def test_exact_headroom_then_next_investor_is_rejected(db, service, users, nearly_funded_project):
    await service.invest(users["free"], nearly_funded_project.id, Decimal("100"), PaymentMethod.STRIPE)
    with pytest.raises(InvalidStateException) as exc_info:
        await service.invest(users["basic"], nearly_funded_project.id, Decimal("100"), PaymentMethod.STRIPE)
    assert exc_info.value.message == "This project is not accepting investments at the moment"


async def test_failed_precondition_leaves_project_untouched(db, service, users, nearly_funded_project):
    with pytest.raises(ValidationException):
        await service.invest(users["free"], nearly_funded_project.id, Decimal("150"), PaymentMethod.STRIPE)
    project = await _reload_project(db, nearly_funded_project.id)
    assert project.funded_amount == Decimal("900")
    assert project.total_investors == 3
    count = (await db.execute(select(func.count()).select_from(Investment))).scalar_one()
    assert count == 0


async def test_lost_race_reports_fresh_state(db, session_factory, service, users, nearly_funded_project, monkeypatch):
    original = ProjectRepository.increment_funding

    async def competing_investor_wins(session, project_id, amount):
        # Another investor takes the remaining headroom first
        async with session_factory() as other:
            await original(other, project_id, amount)
            await ProjectRepository.complete_if_funded(other, project_id)
            await other.commit()
        return False

    monkeypatch.setattr(ProjectRepository, "increment_funding", staticmethod(competing_investor_wins))

    # The rollback expires every instance in the session
    project_id = nearly_funded_project.id
    with pytest.raises(InvalidStateException) as exc_info:
        await service.invest(users["free"], project_id, Decimal("100"), PaymentMethod.STRIPE)
    assert exc_info.value.message == "This project is not accepting investments at the moment"

    project = await _reload_project(db, project_id)
    assert project.funded_amount == Decimal("1000")
    assert project.status == ProjectStatus.COMPLETED
    count = (await db.execute(select(func.count()).select_from(Investment))).scalar_one()
    assert count == 0


# ── cancel ───────────────────────────────────────────────────────────────────


async def test_cancel_reverses_funding_and_reopens(db, service, users, nearly_funded_project, dispatcher):
    investment = await service.invest(
        users["free"], nearly_funded_project.id, Decimal("100"), PaymentMethod.STRIPE
    )

    cancelled = await service.cancel(investment.id, users["free"])

    assert cancelled.status == InvestmentStatus.REFUNDED
    assert cancelled.refund_reason == "User requested refund"
    assert cancelled.refund_date is not None

    project = await _reload_project(db, nearly_funded_project.id)
    assert project.funded_amount == Decimal("900")
    assert project.total_investors == 3
    assert project.status == ProjectStatus.ACTIVE

    payment = (
        await db.execute(select(Payment).where(Payment.investment_id == investment.id))
    ).scalar_one()
    assert payment.status == PaymentStatus.REFUNDED

    assert dispatcher.events[-1] == ("cancelled", users["free"].id, investment.id)


async def test_cancel_twice_does_not_double_decrement(db, service, users, nearly_funded_project):
    investment = await service.invest(
        users["free"], nearly_funded_project.id, Decimal("100"), PaymentMethod.STRIPE
    )
    await service.cancel(investment.id, users["free"], reason="Changed my mind")

    with pytest.raises(InvalidStateException) as exc_info:
        await service.cancel(investment.id, users["free"])
    assert exc_info.value.message == "Investment is already refunded"

    project = await _reload_project(db, nearly_funded_project.id)
    assert project.funded_amount == Decimal("900")
    assert project.total_investors == 3


async def test_cancel_after_window_is_rejected_for_investor(db, service, users, nearly_funded_project):
    investment = await service.invest(
        users["free"], nearly_funded_project.id, Decimal("100"), PaymentMethod.STRIPE
    )
    await _age_investment(db, investment.id, hours=25)

    with pytest.raises(InvalidStateException) as exc_info:
        await service.cancel(investment.id, users["free"])
    assert exc_info.value.message == "Investments can only be cancelled within 24 hours"


async def test_admin_may_cancel_after_window(db, service, users, nearly_funded_project, dispatcher):
    investment = await service.invest(
        users["free"], nearly_funded_project.id, Decimal("100"), PaymentMethod.STRIPE
    )
    await _age_investment(db, investment.id, hours=72)

    cancelled = await service.cancel(investment.id, users["admin"], reason="Compliance review")
    assert cancelled.status == InvestmentStatus.REFUNDED
    assert cancelled.refund_reason == "Compliance review"
    # The owner is notified, not the admin
    assert dispatcher.events[-1] == ("cancelled", users["free"].id, investment.id)


async def test_cancel_by_other_investor_is_forbidden(service, users, nearly_funded_project):
    investment = await service.invest(
        users["free"], nearly_funded_project.id, Decimal("100"), PaymentMethod.STRIPE
    )
    with pytest.raises(ForbiddenException) as exc_info:
        await service.cancel(investment.id, users["basic"])
    assert exc_info.value.message == "You do not have permission to cancel this investment"


async def test_cancel_unknown_investment(service, users):
    with pytest.raises(NotFoundException) as exc_info:
        await service.cancel(uuid.uuid4(), users["free"])
    assert exc_info.value.message == "Investment not found"


async def test_failed_investment_cannot_be_cancelled(db, service, users, nearly_funded_project):
    investment = Investment(
        user_id=users["free"].id,
        project_id=nearly_funded_project.id,
        amount=Decimal("100"),
        status=InvestmentStatus.FAILED,
        payment_method=PaymentMethod.STRIPE,
        expected_return=Decimal("120"),
    )
    db.add(investment)
    await db.commit()

    with pytest.raises(InvalidStateException) as exc_info:
        await service.cancel(investment.id, users["free"])
    assert exc_info.value.message == "Failed investments cannot be cancelled"


async def test_funded_amount_matches_completed_investments(db, service, users):
    project = await create_project(db, users["admin"], target_amount="5000")
    amounts = ["100", "250.50", "400", "1000"]
    investments = []
    for amount, investor in zip(amounts, ["free", "basic", "plus", "premium"]):
        investments.append(
            await service.invest(users[investor], project.id, Decimal(amount), PaymentMethod.STRIPE)
        )
    await service.cancel(investments[1].id, users["basic"])
    await service.cancel(investments[2].id, users["admin"])

    project = await _reload_project(db, project.id)
    assert project.funded_amount == await _completed_total(db, project.id)
    assert project.funded_amount == Decimal("1100")
    assert project.total_investors == 2


# ── queries ──────────────────────────────────────────────────────────────────


async def test_list_user_investments_with_summary(db, users):
    service = InvestmentService(db, RecordingDispatcher())
    project = await create_project(db, users["admin"], target_amount="10000")
    first = await service.invest(users["free"], project.id, Decimal("100"), PaymentMethod.STRIPE)
    await service.invest(users["free"], project.id, Decimal("300"), PaymentMethod.STRIPE)
    await service.cancel(first.id, users["free"])

    page = await service.list_user_investments(users["free"], page=1, limit=10)
    assert page.total == 2
    assert page.summary["total_invested"] == Decimal("300")
    assert all(inv.project.id == project.id for inv in page.items)

    refunded = await service.list_user_investments(users["free"], status=InvestmentStatus.REFUNDED)
    assert refunded.total == 1
    assert refunded.summary["total_investments"] == 1


async def test_get_investment_permissions(service, users, nearly_funded_project):
    investment = await service.invest(
        users["free"], nearly_funded_project.id, Decimal("100"), PaymentMethod.STRIPE
    )
    assert (await service.get_investment(investment.id, users["free"])).id == investment.id
    assert (await service.get_investment(investment.id, users["admin"])).id == investment.id
    with pytest.raises(ForbiddenException) as exc_info:
        await service.get_investment(investment.id, users["plus"])
    assert exc_info.value.message == "You do not have permission to view this investment"


async def test_list_project_investments(db, service, users):
    project = await create_project(db, users["admin"], target_amount="10000")
    await service.invest(users["free"], project.id, Decimal("100"), PaymentMethod.STRIPE)
    cancelled = await service.invest(users["basic"], project.id, Decimal("200"), PaymentMethod.STRIPE)
    await service.invest(users["plus"], project.id, Decimal("300"), PaymentMethod.STRIPE)
    await service.cancel(cancelled.id, users["basic"])

    page = await service.list_project_investments(project.id)
    assert page.total == 2
    assert page.summary == {"total_invested": Decimal("400"), "total_investors": 2}
    assert {inv.user.id for inv in page.items} == {users["free"].id, users["plus"].id}

    with pytest.raises(NotFoundException):
        await service.list_project_investments(uuid.uuid4())


async def test_investment_stats(db, service, users):
    first = await create_project(db, users["admin"], title="A", target_amount="10000")
    second = await create_project(db, users["admin"], title="B", target_amount="10000")
    await service.invest(users["free"], first.id, Decimal("100"), PaymentMethod.STRIPE)
    await service.invest(users["free"], first.id, Decimal("200"), PaymentMethod.STRIPE)
    refund_me = await service.invest(users["free"], second.id, Decimal("500"), PaymentMethod.STRIPE)
    await service.cancel(refund_me.id, users["free"])

    stats = await service.investment_stats(users["free"])
    by_status = {row["status"]: row for row in stats["by_status"]}
    assert by_status[InvestmentStatus.COMPLETED]["count"] == 2
    assert by_status[InvestmentStatus.COMPLETED]["total_amount"] == Decimal("300")
    assert by_status[InvestmentStatus.COMPLETED]["total_expected_return"] == Decimal("360")
    assert by_status[InvestmentStatus.REFUNDED]["count"] == 1
    assert stats["active_projects"] == 1
