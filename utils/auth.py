from __future__ import annotations

from jose import jwt, JWTError
from typing import Dict, Any, Optional
from fastapi import HTTPException, Depends, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from config import AUTH_CONFIG

security = HTTPBearer(auto_error=False)

# Public paths that don't require authentication
PUBLIC_PATHS = [
    "/health",
    "/api/auth/validate-token",
    "/docs",
    "/redoc",
    "/openapi.json",
]


def verify_token(token: str) -> Dict[str, Any]:
    """Verify and decode a JWT token."""
    try:
        return jwt.decode(token, AUTH_CONFIG["jwt_secret"], algorithms=[AUTH_CONFIG["jwt_algorithm"]])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )


def user_from_claims(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce token claims to the session shape used by the service:
    user id plus the role record {role, department_id}."""
    role_record = payload.get("user_role") or {}
    return {
        "id": payload.get("sub") or payload.get("id"),
        "email": payload.get("email"),
        "role": (role_record.get("role") or payload.get("role") or "").lower(),
        "department_id": role_record.get("department_id") or payload.get("department_id"),
    }


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Dict[str, Any]:
    """Dependency to get the current user from the JWT token."""
    user = getattr(request.state, "user", None)
    if user is not None:
        return user
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is missing"
        )
    return user_from_claims(verify_token(credentials.credentials))


def can_generate_reports(user: Dict[str, Any]) -> bool:
    return (user.get("role") or "") in AUTH_CONFIG["report_roles"]


async def require_report_author(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """Only directors and department heads may generate event reports."""
    if not can_generate_reports(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only directors and heads of department can generate reports"
        )
    return user


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """Middleware to validate JWT tokens on all requests except public paths."""

    async def dispatch(self, request: Request, call_next):
        # Always allow CORS preflight through (OPTIONS) so CORSMiddleware can respond
        if request.method.upper() == "OPTIONS":
            return await call_next(request)

        if any(request.url.path.startswith(path) for path in PUBLIC_PATHS):
            return await call_next(request)

        auth_header = request.headers.get("authorization")
        if not auth_header:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"success": False, "message": "Authorization header is missing"}
            )

        if not auth_header.startswith("Bearer "):
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"success": False, "message": "Bearer token is missing"}
            )

        token = auth_header.split("Bearer ", 1)[1]

        try:
            request.state.user = user_from_claims(verify_token(token))
        except HTTPException as e:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"success": False, "message": e.detail}
            )

        return await call_next(request)


def validate_token(token: str) -> Dict[str, Any]:
    """Validate a token and return the session user it carries."""
    if not token:
        return {"success": False, "message": "Token is required"}

    try:
        return {"success": True, "data": user_from_claims(verify_token(token))}
    except HTTPException as e:
        return {"success": False, "message": e.detail}
