"""Azure DevOps/TFS REST client for TFVC changeset timestamps."""

from __future__ import annotations

import ssl
import typing as typ
from http import HTTPStatus

import httpx
import msgspec

from revstamp.logging import get_logger, log_debug, log_info
from revstamp.tfs.config import TfsBuildContext, TfsClientConfig, resolve_access_token
from revstamp.tfs.errors import (
    CannotReadBodyError,
    ConnectionFailedError,
    DateUnparseableError,
    InvalidAccessTokenError,
    InvalidRequestError,
    RequestFailedError,
    RequestTimedOutError,
    ResponseUnparseableError,
    TlsError,
    TransportFailedError,
)
from revstamp.tfs.models import ChangesetResponse
from revstamp.timestamps import TimestampParseError, epoch_millis, parse_rfc3339

if typ.TYPE_CHECKING:
    import types

    from revstamp.environment import EnvironmentReader
    from revstamp.tfs.models import AccessToken

logger = get_logger(__name__)

_SIGNIN_PATH = "/_signin"


def _caused_by_tls(exc: BaseException) -> bool:
    """Return whether an ``ssl.SSLError`` appears in the exception chain."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, ssl.SSLError):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


def parse_created_date(raw: str) -> str:
    """Convert a changeset ``createdDate`` into epoch milliseconds.

    Unlike the SVN and Git sources, milliseconds are preserved.

    Raises
    ------
    DateUnparseableError
        If ``raw`` is not an RFC 3339 timestamp.

    """
    try:
        moment = parse_rfc3339(raw)
    except TimestampParseError as exc:
        raise DateUnparseableError.for_value(raw) from exc
    return epoch_millis(moment)


def decode_changeset(body: bytes) -> ChangesetResponse:
    """Decode a changeset JSON payload.

    Raises
    ------
    ResponseUnparseableError
        If the body is not JSON or lacks a string ``createdDate``.

    """
    try:
        return msgspec.json.decode(body, type=ChangesetResponse)
    except msgspec.DecodeError as exc:
        content = body.decode("utf-8", errors="replace")
        raise ResponseUnparseableError.invalid_json(content, str(exc)) from exc


class TfsChangesetClient:
    """Look up the creation date of the TFVC changeset being built.

    The target servers commonly use self-signed certificates, so TLS
    verification is disabled. Redirects are not followed because a redirect to
    the sign-in page is how the server reports a rejected token.

    Parameters
    ----------
    environment
        Reader for the Azure Pipelines build variables.
    personal_token
        Optional personal access token; when absent the pipeline OAuth token
        from ``SYSTEM_ACCESSTOKEN`` is used.
    config
        Transport settings.
    http_client
        Optional ``httpx.Client`` for testing. If not provided, the instance
        creates and owns its own client.

    """

    def __init__(
        self,
        environment: EnvironmentReader,
        *,
        personal_token: str | None = None,
        config: TfsClientConfig | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialise the client with its environment and credentials."""
        self._environment = environment
        self._personal_token = personal_token
        self._config = config or TfsClientConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=self._config.timeout_s,
            verify=False,  # noqa: S501
            follow_redirects=False,
            headers={
                "User-Agent": self._config.user_agent,
                "Accept": "application/json",
            },
        )

    def close(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> TfsChangesetClient:
        """Return the client for use in a ``with`` block."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: types.TracebackType | None,
    ) -> None:
        """Close owned resources on exit."""
        self.close()

    def timestamp(self) -> str | None:
        """Return the changeset timestamp, or ``None`` outside TFS builds.

        Raises
        ------
        TfsError
            If the build variables are present but the lookup fails.

        """
        context = TfsBuildContext.from_environment(self._environment)
        if context is None:
            return None
        return self.fetch_changeset_timestamp(context)

    def fetch_changeset_timestamp(self, context: TfsBuildContext) -> str:
        """Fetch the changeset described by ``context`` and return its timestamp.

        Returns
        -------
        str
            ``"<epoch-seconds><millis>"`` for the changeset creation date.

        Raises
        ------
        AccessTokenMissingError
            If no credential is available.
        InvalidRequestError
            If the URL or token cannot be put into an HTTP request.
        InvalidAccessTokenError
            If the server redirects to its sign-in page.
        RequestFailedError
            If the server answers with a non-success status.
        TransportError
            If the request does not complete.
        CannotReadBodyError
            If the response body cannot be read.
        ResponseUnparseableError
            If the body is not a changeset payload.
        DateUnparseableError
            If ``createdDate`` is not an RFC 3339 timestamp.

        """
        token = resolve_access_token(self._environment, self._personal_token)
        url = context.changeset_url
        log_info(logger, "Requesting TFVC changeset from %s", url)
        body = self._get(url, token)
        changeset = decode_changeset(body)
        log_debug(logger, "Changeset createdDate is %s", changeset.created_date)
        return parse_created_date(changeset.created_date)

    def _get(self, url: str, token: AccessToken) -> bytes:
        """Perform the GET request and return the raw body of a 2xx response."""
        request = self._build_request(url, token)
        response = self._send(request, url)
        try:
            self._check_response(response, url)
            return self._read_body(response, url)
        finally:
            response.close()

    def _build_request(self, url: str, token: AccessToken) -> httpx.Request:
        """Build the GET request, rejecting URLs and tokens httpx cannot send.

        Raises
        ------
        InvalidRequestError
            If ``url`` does not parse or the token is not ASCII-encodable.

        """
        try:
            return self._client.build_request(
                "GET",
                url,
                headers={"Authorization": token.authorization_header()},
            )
        except httpx.InvalidURL as exc:
            raise InvalidRequestError.invalid_url(url, str(exc)) from exc
        except UnicodeEncodeError:
            # the chained exception would carry the token text
            raise InvalidRequestError.unencodable_token(url) from None

    def _send(self, request: httpx.Request, url: str) -> httpx.Response:
        """Send ``request`` and translate transport failures."""
        try:
            return self._client.send(request, stream=True, follow_redirects=False)
        except httpx.TimeoutException as exc:
            raise RequestTimedOutError.for_url(url) from exc
        except httpx.ConnectError as exc:
            if _caused_by_tls(exc):
                raise TlsError.for_url(url, str(exc)) from exc
            raise ConnectionFailedError.for_url(url, str(exc)) from exc
        except httpx.TransportError as exc:
            raise TransportFailedError.for_url(url, str(exc)) from exc

    def _check_response(self, response: httpx.Response, url: str) -> None:
        """Classify redirects and error statuses.

        Raises
        ------
        InvalidAccessTokenError
            If the response is a redirect to the sign-in page.
        RequestFailedError
            If the response status is not 2xx.

        """
        if response.status_code == HTTPStatus.FOUND:
            location = response.headers.get("Location", "")
            if _SIGNIN_PATH in location:
                raise InvalidAccessTokenError.signin_redirect(url, location)

        if not response.is_success:
            raise RequestFailedError.for_status(response.status_code, url)

    def _read_body(self, response: httpx.Response, url: str) -> bytes:
        """Read the streamed body of ``response``."""
        try:
            return response.read()
        except (httpx.RequestError, httpx.StreamError) as exc:
            raise CannotReadBodyError.for_url(url, str(exc)) from exc


__all__ = ["TfsChangesetClient", "decode_changeset", "parse_created_date"]
