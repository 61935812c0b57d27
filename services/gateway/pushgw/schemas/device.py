"""Device registration schemas."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from pushgw.exceptions import InvalidRequest


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def require(self, *fields: str) -> None:
        """Raise InvalidRequest unless every named field is present and non-empty."""
        if any(getattr(self, f) in (None, "") for f in fields):
            raise InvalidRequest(*(to_camel(f) for f in fields))


class RegisterDeviceRequest(CamelModel):
    user_id: str | None = None
    token: str | None = None
    platform: str | None = None


class UpdateTokenRequest(CamelModel):
    user_id: str | None = None
    token: str | None = None
    old_token: str | None = None
    platform: str | None = None


class UnregisterDeviceRequest(CamelModel):
    user_id: str | None = None
    token: str | None = None


class StandardResponse(CamelModel):
    ok: bool = True
    error: str | None = None
