from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from shared.constants import ADMIN_ROLES, Role


class CurrentUser(BaseModel):
    """Caller context from already-validated JWT claims; used by all services."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID
    email: str = ""
    roles: list[Role] = Field(default_factory=list)
    tenant_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return any(role in ADMIN_ROLES for role in self.roles)
