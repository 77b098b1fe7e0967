"""Configuration for TFS changeset lookups."""

from __future__ import annotations

import dataclasses
import typing as typ

from revstamp.logging import get_logger, log_info
from revstamp.tfs.errors import AccessTokenMissingError
from revstamp.tfs.models import AccessToken, OAuthAccessToken, PersonalAccessToken

if typ.TYPE_CHECKING:
    from revstamp.environment import EnvironmentReader

logger = get_logger(__name__)

TEAM_PROJECT_VARIABLE = "SYSTEM_TEAMPROJECTID"
SOURCE_VERSION_VARIABLE = "BUILD_SOURCEVERSION"
COLLECTION_URI_VARIABLE = "SYSTEM_TEAMFOUNDATIONCOLLECTIONURI"
ACCESS_TOKEN_VARIABLE = "SYSTEM_ACCESSTOKEN"  # noqa: S105

_DEFAULT_TIMEOUT_S = 30.0
_DEFAULT_USER_AGENT = "revstamp/0.1"


@dataclasses.dataclass(frozen=True, slots=True)
class TfsClientConfig:
    """Transport settings for the changeset HTTP request.

    Attributes
    ----------
    timeout_s
        Request timeout in seconds.
    user_agent
        ``User-Agent`` header sent with the request.

    """

    timeout_s: float = _DEFAULT_TIMEOUT_S
    user_agent: str = _DEFAULT_USER_AGENT


@dataclasses.dataclass(frozen=True, slots=True)
class TfsBuildContext:
    """Azure Pipelines variables identifying the changeset being built."""

    team_project: str
    changeset: str
    collection_uri: str

    @classmethod
    def from_environment(cls, environment: EnvironmentReader) -> TfsBuildContext | None:
        """Read the build context, or return ``None`` if any variable is missing.

        All three lookups are always performed so the log shows every variable
        that was checked.
        """
        team_project = environment.get(TEAM_PROJECT_VARIABLE)
        changeset = environment.get(SOURCE_VERSION_VARIABLE)
        collection_uri = environment.get(COLLECTION_URI_VARIABLE)
        if team_project is None or changeset is None or collection_uri is None:
            log_info(
                logger,
                "TFS build variables incomplete; skipping TFVC changeset lookup",
            )
            return None
        return cls(
            team_project=team_project,
            changeset=changeset,
            collection_uri=collection_uri,
        )

    @property
    def changeset_url(self) -> str:
        """Return the REST URL of the changeset."""
        return changeset_url(self.collection_uri, self.team_project, self.changeset)


def changeset_url(collection_uri: str, team_project: str, changeset: str) -> str:
    """Join the collection URI, project and changeset into the REST path."""
    base = collection_uri.removesuffix("/")
    return f"{base}/{team_project}/_apis/tfvc/changesets/{changeset}"


def resolve_access_token(
    environment: EnvironmentReader,
    personal_token: str | None = None,
) -> AccessToken:
    """Choose the credential for the changeset request.

    Parameters
    ----------
    environment
        Reader used to look up ``SYSTEM_ACCESSTOKEN``.
    personal_token
        Caller-supplied personal access token; takes precedence when set.

    Returns
    -------
    AccessToken
        The personal token if given, otherwise the pipeline OAuth token.

    Raises
    ------
    AccessTokenMissingError
        If no personal token is given and ``SYSTEM_ACCESSTOKEN`` is unset.

    """
    if personal_token is not None and personal_token.strip():
        return PersonalAccessToken(personal_token)

    oauth_token = environment.get(ACCESS_TOKEN_VARIABLE, secret=True)
    if oauth_token is None:
        raise AccessTokenMissingError.for_variable(ACCESS_TOKEN_VARIABLE)
    return OAuthAccessToken(oauth_token)


__all__ = [
    "ACCESS_TOKEN_VARIABLE",
    "COLLECTION_URI_VARIABLE",
    "SOURCE_VERSION_VARIABLE",
    "TEAM_PROJECT_VARIABLE",
    "TfsBuildContext",
    "TfsClientConfig",
    "changeset_url",
    "resolve_access_token",
]
