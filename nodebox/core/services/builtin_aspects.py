"""Read-only aspects every repository ships with."""
from typing import List, Optional

from ..nodes import AspectNode, AspectProperty, ADMINS_GROUP_UUID, ROOT_USER_EMAIL
from ..nodes.node import Permissions, Permission


def _builtin(uuid: str, title: str, description: str, properties: List[AspectProperty]) -> AspectNode:
    return AspectNode(
        uuid=uuid,
        fid=uuid,
        title=title,
        description=description,
        owner=ROOT_USER_EMAIL,
        group=ADMINS_GROUP_UUID,
        permissions=Permissions(anonymous=[], group=[Permission.READ], authenticated=[Permission.READ]),
        builtin=True,
        properties_spec=properties,
    )


def builtin_aspects() -> List[AspectNode]:
    return [
        _builtin("user", "User", "Identity of a repository user", [
            AspectProperty(name="email", title="E-mail", type="string", required=True),
            AspectProperty(name="group", title="Primary group", type="uuid", required=True),
            AspectProperty(name="groups", title="Groups", type="array"),
        ]),
        _builtin("group", "Group", "Named set of users", [
            AspectProperty(name="name", title="Name", type="string", required=True),
        ]),
    ]


def find_builtin_aspect(uuid: str) -> Optional[AspectNode]:
    for aspect in builtin_aspects():
        if aspect.uuid == uuid:
            return aspect
    return None
