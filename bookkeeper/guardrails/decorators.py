from fastapi import HTTPException, Depends
from bookkeeper.api.auth import get_current_active_user
from bookkeeper.guardrails.permissions import permission_checker, Permission
from bookkeeper.models.user import User

def require_permission(permission: Permission):
    """
    Dependency to check static permission.
    """
    def check(user: User = Depends(get_current_active_user)) -> User:
        if not permission_checker.check_permission(user, permission):
            raise HTTPException(
                status_code=403,
                detail=f"Permission denied: {permission.value} required"
            )
        return user
    return check
