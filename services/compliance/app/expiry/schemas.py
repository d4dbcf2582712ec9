from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SweepResponse(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    expired_count: int
    expiring_count: int
    notifications_sent: int
    profiles_updated: int
    errors: list[str] = []
    aborted: bool = False


class SweepRunResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = "Document expiry check complete"
    results: SweepResponse

    @classmethod
    def from_result(cls, result) -> "SweepRunResponse":
        """Render a SweepResult; an aborted sweep reports itself as incomplete."""
        message = (
            "Document expiry check incomplete" if result.aborted
            else "Document expiry check complete"
        )
        return cls(message=message, results=SweepResponse.model_validate(result))
