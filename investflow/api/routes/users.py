from fastapi import APIRouter

from investflow.api.deps import CurrentUser, plan_for
from investflow.core.plan_features import features_for
from investflow.schemas.auth import UserResponse
from investflow.utils.envelopes import api_success

router = APIRouter(tags=["users"])


@router.get("/users/me", response_model=dict)
async def get_current_user_endpoint(current_user: CurrentUser):
	effective_plan = plan_for(current_user)
	user_data = UserResponse(
		id=str(current_user.id),
		email=current_user.email,
		name=current_user.name,
		role=current_user.role,
		plan=current_user.plan_key,
		plan_status=current_user.plan_status,
		effective_plan=effective_plan,
		plan_renewal=current_user.plan_renewal,
		created_at=current_user.created_at,
		updated_at=current_user.updated_at,
	)
	data = user_data.model_dump(by_alias=True, mode="json")
	data["planFeatures"] = features_for(effective_plan).to_dict()
	return api_success(data)
