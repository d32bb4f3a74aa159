"""Authenticated principal model."""
from dataclasses import dataclass
from typing import Tuple

from ..nodes import ADMINS_GROUP_UUID, ROOT_USER_EMAIL

ANONYMOUS_USER_EMAIL = "anonymous@nodebox.io"
ANONYMOUS_GROUP_UUID = "--anonymous--"


@dataclass(frozen=True)
class UserPrincipal:
    """
    Identity on whose behalf an operation runs.

    Attributes:
        email: Unique identity, compared against node owners
        group: Primary group, assigned to folders the principal creates
        groups: Every group the principal belongs to
    """
    email: str
    group: str = ""
    groups: Tuple[str, ...] = ()

    @property
    def is_admin(self) -> bool:
        return ADMINS_GROUP_UUID in self.groups or self.group == ADMINS_GROUP_UUID

    @property
    def is_anonymous(self) -> bool:
        return self.email == ANONYMOUS_USER_EMAIL

    def belongs_to(self, group: str) -> bool:
        return bool(group) and (group == self.group or group in self.groups)

    @classmethod
    def anonymous(cls) -> 'UserPrincipal':
        return cls(email=ANONYMOUS_USER_EMAIL, group=ANONYMOUS_GROUP_UUID, groups=(ANONYMOUS_GROUP_UUID,))

    @classmethod
    def root(cls, email: str = ROOT_USER_EMAIL) -> 'UserPrincipal':
        """System principal automation runs as."""
        return cls(email=email, group=ADMINS_GROUP_UUID, groups=(ADMINS_GROUP_UUID,))
