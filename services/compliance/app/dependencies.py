"""
Compliance service — shared FastAPI dependencies.

Caller identity comes from already-validated JWT claims (shared.auth); this
module only adds the admin capability gate and the settings provider.
"""
from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from app.config import Settings
from app.exceptions import AdminAccessRequired
from shared.auth.dependencies import get_current_user_required
from shared.models.user import CurrentUser

# Alias the shared dependency so routes import from here, not from shared.
get_current_user = get_current_user_required


@lru_cache
def get_settings() -> Settings:
    return Settings()


def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Raise 403 unless the caller holds the admin capability.

    Runs as a route dependency, i.e. before any handler touches the database.
    """
    if not current_user.is_admin:
        raise AdminAccessRequired()
    return current_user
