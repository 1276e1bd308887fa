from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResolveRequest(BaseModel):
    """Body of POST /api/ldap-verify. Any subset of the three fields."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(default="", max_length=320)
    name: str = Field(default="", max_length=256)
    user_id: str = Field(default="", alias="userId", max_length=256)

    @field_validator("email", "name", "user_id", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("email", "name", "user_id")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()


class AuthRequest(BaseModel):
    """Body of POST /api/ldap-auth."""

    username: str = Field(default="", max_length=256)
    # Never stripped: leading/trailing spaces can be part of a password.
    password: str = Field(default="", max_length=1024)

    @field_validator("username", "password", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("username")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()
