from fastapi import APIRouter, Depends
from pydantic import BaseModel

from utils.auth import can_generate_reports, get_current_user, validate_token

router = APIRouter(prefix="/api/auth", tags=["auth"])


class TokenValidationRequest(BaseModel):
    token: str


@router.get("/profile")
async def get_profile(current_user: dict = Depends(get_current_user)):
    """Session user carried by the bearer token."""
    return {
        "id": current_user.get("id"),
        "email": current_user.get("email"),
        "role": current_user.get("role"),
        "department_id": current_user.get("department_id"),
        "can_generate_reports": can_generate_reports(current_user),
    }


@router.post("/validate-token")
async def validate_token_endpoint(request: TokenValidationRequest):
    """Validate a token issued by the authentication provider."""
    return validate_token(request.token)
