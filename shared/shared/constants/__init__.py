from shared.constants.roles import ADMIN_ROLES, Role

__all__ = ["ADMIN_ROLES", "Role"]
