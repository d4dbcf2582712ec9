from enum import Enum


class Role(str, Enum):
    DRIVER = "driver"
    RIDER = "rider"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


ADMIN_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.SUPER_ADMIN})
