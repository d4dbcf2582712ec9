from shared.models.user import CurrentUser
from shared.models.pagination import PaginatedResponse

__all__ = ["CurrentUser", "PaginatedResponse"]
