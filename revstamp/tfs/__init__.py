"""TFVC changeset timestamps from Azure DevOps/TFS."""

from __future__ import annotations

from .client import TfsChangesetClient
from .config import TfsBuildContext, TfsClientConfig, resolve_access_token
from .errors import (
    AccessTokenMissingError,
    CannotReadBodyError,
    ConnectionFailedError,
    DateUnparseableError,
    InvalidAccessTokenError,
    InvalidRequestError,
    OtherHttpError,
    RequestFailedError,
    RequestTimedOutError,
    ResponseUnparseableError,
    ServerError,
    TfsError,
    TfsErrorKind,
    TlsError,
    TransportError,
    TransportFailedError,
)
from .models import AccessToken, OAuthAccessToken, PersonalAccessToken

__all__ = [
    "AccessToken",
    "AccessTokenMissingError",
    "CannotReadBodyError",
    "ConnectionFailedError",
    "DateUnparseableError",
    "InvalidAccessTokenError",
    "InvalidRequestError",
    "OAuthAccessToken",
    "OtherHttpError",
    "PersonalAccessToken",
    "RequestFailedError",
    "RequestTimedOutError",
    "ResponseUnparseableError",
    "ServerError",
    "TfsBuildContext",
    "TfsChangesetClient",
    "TfsClientConfig",
    "TfsError",
    "TfsErrorKind",
    "TlsError",
    "TransportError",
    "TransportFailedError",
    "resolve_access_token",
]
