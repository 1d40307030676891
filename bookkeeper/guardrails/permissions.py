from enum import Enum
import logging
from bookkeeper.models.user import User

logger = logging.getLogger(__name__)

class Permission(str, Enum):
    # Ledger
    VIEW_LEDGER = "VIEW_LEDGER"
    CREATE_JOURNAL = "CREATE_JOURNAL"
    POST_JOURNAL = "POST_JOURNAL"
    REVERSE_JOURNAL = "REVERSE_JOURNAL"

    # Chart of accounts
    MANAGE_ACCOUNTS = "MANAGE_ACCOUNTS"

    # Reporting
    VIEW_REPORTS = "VIEW_REPORTS"
    VIEW_AUDIT = "VIEW_AUDIT"

class Role(str, Enum):
    ADMIN = "admin"
    ACCOUNTANT = "accountant" # Day-to-day bookkeeping
    VIEWER = "viewer" # Read-only

# Role -> Permissions Mapping
ROLE_PERMISSIONS = {
    Role.ADMIN: [p for p in Permission], # All
    Role.ACCOUNTANT: [
        Permission.VIEW_LEDGER, Permission.CREATE_JOURNAL, Permission.POST_JOURNAL,
        Permission.REVERSE_JOURNAL, Permission.VIEW_REPORTS, Permission.VIEW_AUDIT
    ],
    Role.VIEWER: [
        Permission.VIEW_LEDGER, Permission.VIEW_REPORTS
    ],
}

class PermissionChecker:
    def check_permission(self, user: User, permission: Permission) -> bool:
        """
        Basic Role-Based Check.
        """
        try:
            role_enum = Role(user.role)
        except ValueError:
            logger.warning(f"Unknown role {user.role} for user {user.username}")
            return False

        if permission in ROLE_PERMISSIONS.get(role_enum, []):
            return True

        logger.warning(f"User {user.username} ({user.role}) denied permission {permission.value}")
        return False

permission_checker = PermissionChecker()
