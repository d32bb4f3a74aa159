"""
Unit tests for the permission engine.

Covers each step of the precedence order.
"""
import pytest

from nodebox.core.auth import PermissionEngine, UserPrincipal
from nodebox.core.exceptions import ForbiddenError
from nodebox.core.nodes import (
    FolderNode,
    MetaNode,
    Permission,
    Permissions,
    ADMINS_GROUP_UUID,
    ROOT_FOLDER_UUID,
    root_folder,
)

GROUP_G = "--group-g--"


@pytest.fixture
def engine():
    return PermissionEngine()


@pytest.fixture
def owner():
    return UserPrincipal(email="a@example.com", group="--other--", groups=("--other--",))


@pytest.fixture
def member():
    return UserPrincipal(email="member@example.com", group=GROUP_G, groups=(GROUP_G,))


@pytest.fixture
def outsider():
    return UserPrincipal(email="outsider@example.com", group="--outside--", groups=("--outside--",))


@pytest.fixture
def administrator():
    return UserPrincipal(email="admin@example.com", group=ADMINS_GROUP_UUID, groups=(ADMINS_GROUP_UUID,))


@pytest.fixture
def folder():
    """Folder owned by A whose group G may write, with no anonymous access."""
    return FolderNode(
        uuid="f1",
        title="Team",
        parent=ROOT_FOLDER_UUID,
        owner="a@example.com",
        group=GROUP_G,
        permissions=Permissions(anonymous=[], group=[Permission.READ, Permission.WRITE], authenticated=[]),
    )


class TestPrecedence:
    """Tests for the ordered permission rules."""

    def test_outsider_denied_write(self, engine, folder, outsider):
        assert not engine.is_allowed(outsider, folder, Permission.WRITE)

    def test_group_member_granted_write(self, engine, folder, member):
        assert engine.is_allowed(member, folder, Permission.WRITE)

    def test_admin_always_granted(self, engine, folder, administrator):
        folder.permissions = Permissions(anonymous=[], group=[], authenticated=[])

        assert engine.is_allowed(administrator, folder, Permission.WRITE)
        assert engine.is_allowed(administrator, folder, Permission.EXPORT)

    def test_owner_always_granted(self, engine, folder, owner):
        folder.permissions = Permissions(anonymous=[], group=[], authenticated=[])

        assert engine.is_allowed(owner, folder, Permission.EXPORT)

    @pytest.mark.parametrize("principal", [
        UserPrincipal.anonymous(),
        UserPrincipal(email="someone@example.com"),
        UserPrincipal(email="admin@example.com", group=ADMINS_GROUP_UUID),
    ])
    def test_root_read_never_fails(self, engine, principal):
        assert engine.is_allowed(principal, root_folder(), Permission.READ)

    def test_root_write_only_for_admins(self, engine, member, administrator):
        assert not engine.is_allowed(member, root_folder(), Permission.WRITE)
        assert engine.is_allowed(administrator, root_folder(), Permission.WRITE)

    def test_anonymous_set_applies_to_everyone(self, engine, folder, outsider):
        folder.permissions.anonymous = [Permission.READ]

        assert engine.is_allowed(UserPrincipal.anonymous(), folder, Permission.READ)
        assert engine.is_allowed(outsider, folder, Permission.READ)

    def test_authenticated_set_excludes_anonymous(self, engine, folder, outsider):
        folder.permissions.authenticated = [Permission.READ]

        assert engine.is_allowed(outsider, folder, Permission.READ)
        assert not engine.is_allowed(UserPrincipal.anonymous(), folder, Permission.READ)

    def test_group_set_requires_membership(self, engine, folder, outsider, member):
        folder.permissions.group = [Permission.EXPORT]

        assert engine.is_allowed(member, folder, Permission.EXPORT)
        assert not engine.is_allowed(outsider, folder, Permission.EXPORT)

    def test_secondary_group_membership_counts(self, engine, folder):
        principal = UserPrincipal(email="x@example.com", group="--main--", groups=("--main--", GROUP_G))

        assert engine.is_allowed(principal, folder, Permission.WRITE)

    def test_non_folder_needs_no_check(self, engine, outsider):
        node = MetaNode(uuid="m1", title="Meta", parent="f1",
                        permissions=Permissions(anonymous=[], group=[], authenticated=[]))

        assert engine.is_allowed(outsider, node, Permission.WRITE)


class TestAssertPermission:

    def test_raises_forbidden(self, engine, folder, outsider):
        with pytest.raises(ForbiddenError) as exc_info:
            engine.assert_permission(outsider, folder, Permission.WRITE)

        assert exc_info.value.error_code == "ForbiddenError"

    def test_passes_silently(self, engine, folder, member):
        engine.assert_permission(member, folder, Permission.WRITE)

    def test_shortcuts(self, engine, folder, member, outsider):
        assert engine.can_read(member, folder)
        assert engine.can_write(member, folder)
        assert not engine.can_read(outsider, folder)


class TestUserPrincipal:

    def test_admin_by_primary_group(self):
        assert UserPrincipal(email="x", group=ADMINS_GROUP_UUID).is_admin

    def test_root_is_admin(self):
        root = UserPrincipal.root()

        assert root.is_admin
        assert root.email == "root@nodebox.io"

    def test_anonymous(self):
        principal = UserPrincipal.anonymous()

        assert principal.is_anonymous
        assert not principal.is_admin

    def test_belongs_to_ignores_empty_group(self):
        assert not UserPrincipal(email="x").belongs_to("")
