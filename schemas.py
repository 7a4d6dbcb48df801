"""
Wire schemas for the events exchanged with the connection layer.

Inbound payloads are validated here before they reach the engine; anything
malformed is rejected as MissingIdentity and dropped by the caller. Outbound
payloads are built from the models below and dumped with their camelCase
aliases.
"""

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from errors import MissingIdentity
from models import ANY, GENDERS

FIND_PARTNER = "find_partner"
CANCEL_SEARCH = "cancel_search"
LEAVE_CHAT = "leave_chat"
HEARTBEAT = "heartbeat"

WAITING = "waiting"
PARTNER_FOUND = "partner_found"
PARTNER_DISCONNECTED = "partner_disconnected"
SERVER_SHUTDOWN = "server_shutdown"
SESSION_EXPIRED = "session_expired"


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")


class Preferences(WireModel):
    gender: str | None = None
    partner_gender: str = Field(default=ANY, alias="partnerGender")
    show_gender: bool = Field(default=False, alias="showGender")
    display_name: str = Field(default="", alias="displayName", max_length=64)

    @field_validator("gender", mode="before")
    @classmethod
    def _gender(cls, value):
        if value is None or not str(value).strip():
            return None
        value = str(value).strip().lower()
        if value not in GENDERS:
            raise ValueError(f"unknown gender {value!r}")
        return value

    @field_validator("partner_gender", mode="before")
    @classmethod
    def _partner_gender(cls, value):
        if value is None or not str(value).strip():
            return ANY
        value = str(value).strip().lower()
        if value != ANY and value not in GENDERS:
            raise ValueError(f"unknown partner gender {value!r}")
        return value

    @field_validator("display_name", mode="before")
    @classmethod
    def _display_name(cls, value):
        return value or ""

    @field_validator("show_gender", mode="before")
    @classmethod
    def _show_gender(cls, value):
        return False if value is None else value


class IdentityEvent(WireModel):
    identity: str = Field(min_length=1)


class FindPartner(IdentityEvent):
    preferences: Preferences = Field(default_factory=Preferences)

    @field_validator("preferences", mode="before")
    @classmethod
    def _preferences(cls, value):
        return {} if value is None else value


class CancelSearch(IdentityEvent):
    pass


class LeaveChat(IdentityEvent):
    room_id: str | None = Field(default=None, alias="roomId")


class Heartbeat(IdentityEvent):
    pass


INBOUND = {
    FIND_PARTNER: FindPartner,
    CANCEL_SEARCH: CancelSearch,
    LEAVE_CHAT: LeaveChat,
    HEARTBEAT: Heartbeat,
}


def parse_inbound(event, payload):
    schema = INBOUND.get(event)
    if schema is None:
        raise MissingIdentity(event, "unknown event")
    if not isinstance(payload, dict):
        raise MissingIdentity(event, "payload is not an object")
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise MissingIdentity(event, f"invalid fields: {fields}") from e


class Waiting(WireModel):
    message: str


class PartnerProfile(WireModel):
    gender: str | None = None
    display_name: str = Field(alias="displayName")
    show_gender: bool = Field(alias="showGender")


class PartnerFound(WireModel):
    room_id: str = Field(alias="roomId")
    partner_profile: PartnerProfile = Field(alias="partnerProfile")


class PartnerDisconnected(WireModel):
    pass


class ServerShutdown(WireModel):
    pass


class SessionExpired(WireModel):
    pass


def dump(model):
    return model.model_dump(by_alias=True)
