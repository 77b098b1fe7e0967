"""Typed models for TFS changeset lookups."""

from __future__ import annotations

import base64
import dataclasses

import msgspec


@dataclasses.dataclass(frozen=True, slots=True)
class PersonalAccessToken:
    """Caller-supplied personal access token, sent as HTTP Basic auth."""

    secret: str = dataclasses.field(repr=False)

    def authorization_header(self) -> str:
        """Return the ``Authorization`` value (empty user name, token password)."""
        encoded = base64.b64encode(f":{self.secret}".encode()).decode("ascii")
        return f"Basic {encoded}"


@dataclasses.dataclass(frozen=True, slots=True)
class OAuthAccessToken:
    """Pipeline OAuth token from ``SYSTEM_ACCESSTOKEN``, sent as Bearer auth."""

    secret: str = dataclasses.field(repr=False)

    def authorization_header(self) -> str:
        """Return the ``Authorization`` value for the token."""
        return f"Bearer {self.secret}"


AccessToken = PersonalAccessToken | OAuthAccessToken


class ChangesetResponse(msgspec.Struct, kw_only=True):
    """The part of a TFVC changeset payload that revstamp reads.

    Attributes
    ----------
    created_date
        Creation date of the changeset as an RFC 3339 string.

    """

    created_date: str = msgspec.field(name="createdDate")


__all__ = [
    "AccessToken",
    "ChangesetResponse",
    "OAuthAccessToken",
    "PersonalAccessToken",
]
