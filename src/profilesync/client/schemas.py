"""Pydantic schemas for the remote profiles response."""

from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator

from profilesync.core.types import Profile


class RemoteLogin(BaseModel):
    uuid: str


class RemoteName(BaseModel):
    first: str
    last: str


class RemoteDob(BaseModel):
    age: int = Field(ge=0)


class RemoteLocation(BaseModel):
    city: str


class RemotePicture(BaseModel):
    large: str

    @field_validator("large")
    @classmethod
    def _absolute_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"not an absolute URL: {value!r}")
        return value


class RemoteUser(BaseModel):
    """One record of the remote response."""

    login: RemoteLogin
    name: RemoteName
    dob: RemoteDob
    location: RemoteLocation
    picture: RemotePicture

    def to_profile(self) -> Profile:
        """Map the transfer object to the domain Profile."""
        return Profile(
            id=self.login.uuid,
            full_name=f"{self.name.first} {self.name.last}",
            age=self.dob.age,
            city=self.location.city,
            image_url=self.picture.large,
        )


class RemoteProfilesResponse(BaseModel):
    """Top-level response body."""

    results: list[RemoteUser]
