"""Investment ledger routes."""

import uuid
from typing import Optional

from fastapi import APIRouter, Query, status

from investflow.api.deps import DB, AdminUser, CurrentUser, EventDispatcher
from investflow.models.models import InvestmentStatus, Project
from investflow.schemas.common import Pagination
from investflow.schemas.investments import (
    InvestmentCancel,
    InvestmentCreate,
    InvestmentResponse,
    StatusBreakdown,
)
from investflow.services.investment_service import InvestmentService
from investflow.utils.envelopes import api_success
from investflow.utils.money import format_money

router = APIRouter(tags=["investments"])


@router.post("/investments", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_investment(
    payload: InvestmentCreate,
    current_user: CurrentUser,
    db: DB,
    dispatcher: EventDispatcher,
):
    service = InvestmentService(db, dispatcher)
    investment = await service.invest(
        current_user,
        payload.project_id,
        payload.amount,
        payload.payment_method,
    )
    project = await db.get(Project, investment.project_id)
    return api_success(
        InvestmentResponse.from_model(investment, project=project).model_dump(
            by_alias=True, mode="json"
        ),
        message=f"Investment of ${format_money(investment.amount)} confirmed",
    )


@router.post("/investments/{investment_id}/cancel", response_model=dict)
async def cancel_investment(
    investment_id: uuid.UUID,
    current_user: CurrentUser,
    db: DB,
    dispatcher: EventDispatcher,
    payload: Optional[InvestmentCancel] = None,
):
    service = InvestmentService(db, dispatcher)
    investment = await service.cancel(
        investment_id,
        current_user,
        reason=payload.reason if payload else None,
    )
    return api_success(
        InvestmentResponse.from_model(investment, project=investment.project).model_dump(
            by_alias=True, mode="json"
        ),
        message="Investment cancelled and refunded",
    )


@router.get("/investments/my-investments", response_model=dict)
async def my_investments(
    current_user: CurrentUser,
    db: DB,
    status_filter: Optional[InvestmentStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    result = await InvestmentService(db).list_user_investments(
        current_user, status=status_filter, page=page, limit=limit
    )
    return api_success(
        {
            "investments": [
                InvestmentResponse.from_model(inv, project=inv.project).model_dump(
                    by_alias=True, mode="json"
                )
                for inv in result.items
            ],
            "pagination": Pagination.build(page, limit, result.total).model_dump(by_alias=True),
            "summary": {
                "totalInvested": float(result.summary["total_invested"]),
                "totalInvestments": result.summary["total_investments"],
            },
        }
    )


@router.get("/investments/stats", response_model=dict)
async def investment_stats(current_user: CurrentUser, db: DB):
    stats = await InvestmentService(db).investment_stats(current_user)
    by_status = {
        row["status"].value: StatusBreakdown(**row).model_dump(by_alias=True)
        for row in stats["by_status"]
    }
    return api_success({"byStatus": by_status, "activeProjects": stats["active_projects"]})


@router.get("/investments/project/{project_id}", response_model=dict)
async def project_investments(
    project_id: uuid.UUID,
    admin: AdminUser,
    db: DB,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    result = await InvestmentService(db).list_project_investments(
        project_id, page=page, limit=limit
    )
    return api_success(
        {
            "investments": [
                InvestmentResponse.from_model(inv, investor=inv.user).model_dump(
                    by_alias=True, mode="json"
                )
                for inv in result.items
            ],
            "pagination": Pagination.build(page, limit, result.total).model_dump(by_alias=True),
            "stats": {
                "totalInvested": float(result.summary["total_invested"]),
                "totalInvestors": result.summary["total_investors"],
            },
        }
    )


@router.get("/investments/{investment_id}", response_model=dict)
async def get_investment(investment_id: uuid.UUID, current_user: CurrentUser, db: DB):
    investment = await InvestmentService(db).get_investment(investment_id, current_user)
    return api_success(
        InvestmentResponse.from_model(
            investment, project=investment.project, investor=investment.user
        ).model_dump(by_alias=True, mode="json")
    )
