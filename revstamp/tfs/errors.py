"""Custom exceptions for TFS/Azure DevOps changeset lookups."""

from __future__ import annotations

import enum

# Content preview length for error messages
_CONTENT_PREVIEW_LIMIT = 100

_HTTP_SERVER_ERROR_THRESHOLD = 500


def _preview(content: str) -> str:
    if len(content) > _CONTENT_PREVIEW_LIMIT:
        return content[:_CONTENT_PREVIEW_LIMIT] + "..."
    return content


class TfsErrorKind(enum.StrEnum):
    """Categories used to tell remote failures apart in diagnostics."""

    ACCESS_TOKEN_MISSING = "access_token_missing"
    INVALID_ACCESS_TOKEN = "invalid_access_token"
    INVALID_REQUEST = "invalid_request"
    REQUEST_TIMED_OUT = "request_timed_out"
    CONNECTION_FAILED = "connection_failed"
    TLS_FAILED = "tls_failed"
    TRANSPORT_FAILED = "transport_failed"
    SERVER_ERROR = "server_error"
    OTHER_HTTP_ERROR = "other_http_error"
    CANNOT_READ_BODY = "cannot_read_body"
    RESPONSE_UNPARSEABLE = "response_unparseable"
    DATE_UNPARSEABLE = "date_unparseable"


class TfsError(Exception):
    """Base exception for all TFS changeset lookup errors.

    This provides a single catch point for the resolver, which treats every
    TFS failure as "no timestamp from this source".
    """

    kind: TfsErrorKind


class AccessTokenMissingError(TfsError):
    """Raised when neither a personal nor an OAuth token is available."""

    kind = TfsErrorKind.ACCESS_TOKEN_MISSING

    @classmethod
    def for_variable(cls, variable: str) -> AccessTokenMissingError:
        """Create error explaining how to expose the pipeline OAuth token.

        Parameters
        ----------
        variable
            Name of the environment variable that was expected to hold it.

        Returns
        -------
        AccessTokenMissingError
            Error with remediation guidance.

        """
        return cls(
            f"Environment variable {variable} not set. Please make sure you "
            "activated 'Additional options > Allow scripts to access OAuth "
            "token' for your pipeline job, or pass a personal access token. "
            "Otherwise the timestamp for a TFVC changeset cannot be determined."
        )


class InvalidAccessTokenError(TfsError):
    """Raised when the server redirects to its sign-in page."""

    kind = TfsErrorKind.INVALID_ACCESS_TOKEN

    def __init__(self, message: str, *, url: str) -> None:
        """Initialise with a message and the requested URL."""
        self.url = url
        super().__init__(message)

    @classmethod
    def signin_redirect(cls, url: str, location: str) -> InvalidAccessTokenError:
        """Create error for a sign-in redirect in response to ``url``."""
        return cls(
            f"Access token was rejected by {url}: redirected to sign-in page "
            f"{location}",
            url=url,
        )


class InvalidRequestError(TfsError):
    """Raised when the changeset request cannot be built from the inputs.

    Attributes
    ----------
    url
        URL of the changeset request as assembled from the build variables.

    """

    kind = TfsErrorKind.INVALID_REQUEST

    def __init__(self, message: str, *, url: str) -> None:
        """Initialise with a message and the offending URL."""
        self.url = url
        super().__init__(message)

    @classmethod
    def invalid_url(cls, url: str, detail: str) -> InvalidRequestError:
        """Create error for a changeset URL that does not parse."""
        return cls(f"Invalid changeset URL {url!r}: {detail}", url=url)

    @classmethod
    def unencodable_token(cls, url: str) -> InvalidRequestError:
        """Create error for a token that cannot be sent as an HTTP header.

        The token itself is left out of the message.
        """
        return cls(
            f"Access token for {url} contains characters that cannot be sent "
            "in an HTTP header",
            url=url,
        )


class TransportError(TfsError):
    """Raised when the request never produced an HTTP response.

    Attributes
    ----------
    url
        URL of the changeset request.

    """

    def __init__(self, message: str, *, url: str) -> None:
        """Initialise with a message and the requested URL."""
        self.url = url
        super().__init__(message)


class RequestTimedOutError(TransportError):
    """Raised when the changeset request times out."""

    kind = TfsErrorKind.REQUEST_TIMED_OUT

    @classmethod
    def for_url(cls, url: str) -> RequestTimedOutError:
        """Create error for a timed-out request to ``url``."""
        return cls(f"Request to {url} timed out", url=url)


class ConnectionFailedError(TransportError):
    """Raised when no connection could be established (DNS, refused)."""

    kind = TfsErrorKind.CONNECTION_FAILED

    @classmethod
    def for_url(cls, url: str, detail: str) -> ConnectionFailedError:
        """Create error for a failed connection to ``url``."""
        return cls(f"Could not connect to {url}: {detail}", url=url)


class TlsError(TransportError):
    """Raised when the TLS handshake fails."""

    kind = TfsErrorKind.TLS_FAILED

    @classmethod
    def for_url(cls, url: str, detail: str) -> TlsError:
        """Create error for a TLS failure talking to ``url``."""
        return cls(f"TLS handshake with {url} failed: {detail}", url=url)


class TransportFailedError(TransportError):
    """Raised for any other transport-level failure."""

    kind = TfsErrorKind.TRANSPORT_FAILED

    @classmethod
    def for_url(cls, url: str, detail: str) -> TransportFailedError:
        """Create error for a generic transport failure."""
        return cls(f"Request to {url} failed: {detail}", url=url)


class RequestFailedError(TfsError):
    """Raised when the server answers with a non-success status.

    Attributes
    ----------
    status_code
        HTTP status code from the response.
    url
        URL of the changeset request.

    """

    def __init__(self, message: str, *, status_code: int, url: str) -> None:
        """Initialise with a message, status code and URL."""
        self.status_code = status_code
        self.url = url
        super().__init__(message)

    @classmethod
    def for_status(cls, status_code: int, url: str) -> RequestFailedError:
        """Return the subclass matching ``status_code`` for ``url``.

        5xx responses become :class:`ServerError`; everything else becomes
        :class:`OtherHttpError`.
        """
        error_cls: type[RequestFailedError] = (
            ServerError
            if status_code >= _HTTP_SERVER_ERROR_THRESHOLD
            else OtherHttpError
        )
        return error_cls(
            f"Request to {url} failed with HTTP status {status_code}",
            status_code=status_code,
            url=url,
        )


class ServerError(RequestFailedError):
    """Raised for 5xx responses."""

    kind = TfsErrorKind.SERVER_ERROR


class OtherHttpError(RequestFailedError):
    """Raised for non-2xx responses other than 5xx and sign-in redirects."""

    kind = TfsErrorKind.OTHER_HTTP_ERROR


class CannotReadBodyError(TfsError):
    """Raised when the response body cannot be read."""

    kind = TfsErrorKind.CANNOT_READ_BODY

    def __init__(self, message: str, *, url: str) -> None:
        """Initialise with a message and the requested URL."""
        self.url = url
        super().__init__(message)

    @classmethod
    def for_url(cls, url: str, detail: str) -> CannotReadBodyError:
        """Create error for an unreadable body from ``url``."""
        return cls(f"Could not read response body from {url}: {detail}", url=url)


class ResponseUnparseableError(TfsError):
    """Raised when the body is not a changeset with a ``createdDate``."""

    kind = TfsErrorKind.RESPONSE_UNPARSEABLE

    def __init__(self, message: str, *, content: str) -> None:
        """Initialise with a message and the offending body."""
        self.content = content
        super().__init__(message)

    @classmethod
    def invalid_json(cls, content: str, detail: str) -> ResponseUnparseableError:
        """Create error with a truncated preview of the body.

        Parameters
        ----------
        content
            The body that failed to decode.
        detail
            Decoder message.

        Returns
        -------
        ResponseUnparseableError
            Error with body preview.

        """
        return cls(
            f"Failed to parse JSON response from TFS ({detail}): {_preview(content)}",
            content=content,
        )


class DateUnparseableError(TfsError):
    """Raised when ``createdDate`` is not an RFC 3339 timestamp."""

    kind = TfsErrorKind.DATE_UNPARSEABLE

    def __init__(self, message: str, *, raw: str) -> None:
        """Initialise with a message and the offending date string."""
        self.raw = raw
        super().__init__(message)

    @classmethod
    def for_value(cls, raw: str) -> DateUnparseableError:
        """Create error for an unparseable ``createdDate`` value."""
        return cls(f"Could not parse changeset createdDate {raw!r}", raw=raw)


__all__ = [
    "AccessTokenMissingError",
    "CannotReadBodyError",
    "ConnectionFailedError",
    "DateUnparseableError",
    "InvalidAccessTokenError",
    "InvalidRequestError",
    "OtherHttpError",
    "RequestFailedError",
    "RequestTimedOutError",
    "ResponseUnparseableError",
    "ServerError",
    "TfsError",
    "TfsErrorKind",
    "TlsError",
    "TransportError",
    "TransportFailedError",
]
