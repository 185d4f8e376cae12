from enum import Enum

from fastapi import Depends, HTTPException

from jobtrack.deps.auth import AuthContext, require_auth


class Role(Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    CONTRACTOR = "CONTRACTOR"


ROLE_RANK = {
    Role.CONTRACTOR: 1,
    Role.MANAGER: 2,
    Role.ADMIN: 3,
}


def require_role(role: Role):
    def dependency(auth: AuthContext = Depends(require_auth)) -> AuthContext:
        try:
            user_role = Role(auth.role)
        except ValueError as exc:
            raise HTTPException(status_code=403, detail="Invalid role claim") from exc

        if ROLE_RANK[user_role] < ROLE_RANK[role]:
            raise HTTPException(status_code=403, detail="Insufficient role")

        return auth

    return dependency
