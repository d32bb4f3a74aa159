"""
Permission engine.

Folder-scoped access control. Files and metadata nodes are gated by their
parent folder, so only folders are ever checked directly.
"""
from ..exceptions import ForbiddenError
from ..logging import get_logger
from ..nodes import Node, Permission
from .principal import UserPrincipal

logger = get_logger(__name__)


class PermissionEngine:
    """
    Decides whether a principal may Read, Write or Export a folder.

    Rules are evaluated in order and the first match wins:

    1. non-folder targets need no folder-level check
    2. administrators are always permitted
    3. the root folder grants Read to everyone, anything else to admins only
    4. the owner is always permitted
    5. the anonymous set applies to any principal
    6. the group set applies to members of the node's group
    7. the authenticated set applies to anyone but the anonymous identity
    8. otherwise denied
    """

    def is_allowed(self, principal: UserPrincipal, node: Node, permission: str) -> bool:
        if not node.is_folder():
            return True

        if principal.is_admin:
            return True

        if node.is_root_folder():
            return permission == Permission.READ

        if node.owner and node.owner == principal.email:
            return True

        permissions = node.permissions

        if permission in permissions.anonymous:
            return True

        if principal.belongs_to(node.group) and permission in permissions.group:
            return True

        if not principal.is_anonymous and permission in permissions.authenticated:
            return True

        return False

    def assert_permission(self, principal: UserPrincipal, node: Node, permission: str) -> None:
        """
        Raises:
            ForbiddenError: If the principal is denied
        """
        if not self.is_allowed(principal, node, permission):
            logger.debug(f"{principal.email} denied {permission} on {node.uuid}")
            raise ForbiddenError(f"{permission} denied on {node.uuid}")

    def can_read(self, principal: UserPrincipal, node: Node) -> bool:
        return self.is_allowed(principal, node, Permission.READ)

    def can_write(self, principal: UserPrincipal, node: Node) -> bool:
        return self.is_allowed(principal, node, Permission.WRITE)
