from dataclasses import dataclass

from fastapi import HTTPException, Request

from jobtrack.services.auth_service import verify_token

# tokens minted without a role claim belong to office staff
DEFAULT_ROLE = "MANAGER"


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    company_id: int
    role: str


def _parse_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise HTTPException(status_code=401, detail="Invalid Authorization header")

    return parts[1].strip()


def _header_company_id(request: Request) -> int:
    header_company_id = request.headers.get("X-Company-Id")
    if header_company_id is None:
        raise HTTPException(status_code=403, detail="Missing X-Company-Id header")

    try:
        return int(header_company_id)
    except ValueError as exc:
        raise HTTPException(status_code=403, detail="Invalid X-Company-Id header") from exc


def require_auth(request: Request) -> AuthContext:
    token = _parse_bearer_token(request)

    try:
        claims = verify_token(token)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    try:
        token_company_id = int(claims.get("company_id"))
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=401, detail="Invalid token claims") from exc

    if _header_company_id(request) != token_company_id:
        raise HTTPException(status_code=403, detail="Company mismatch")

    ctx = AuthContext(
        user_id=str(claims.get("sub")),
        company_id=token_company_id,
        role=str(claims.get("role") or DEFAULT_ROLE).upper(),
    )

    request.state.user_id = ctx.user_id
    request.state.company_id = ctx.company_id
    request.state.role = ctx.role

    return ctx
