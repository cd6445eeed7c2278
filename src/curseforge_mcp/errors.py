"""Exception types shared by the API clients and the tool layer."""

# Longest slice of an error body carried in a TransportError message
ERROR_BODY_LIMIT = 500


class CurseForgeError(Exception):
    """Base class for curseforge-mcp errors."""


class ConfigurationError(CurseForgeError):
    """A client was constructed without the credential it needs."""


class BrowserUnavailableError(CurseForgeError):
    """The browser transport cannot start on this machine."""


class TransportError(CurseForgeError):
    """A non-2xx response from an upstream endpoint."""

    def __init__(
        self,
        status: int,
        url: str,
        body: str = "",
        limit: int = ERROR_BODY_LIMIT,
        prefix: str = "HTTP",
    ):
        self.status = status
        self.url = url
        self.body = body or ""
        message = f"{prefix} {status}: {url}"
        if self.body:
            message += f"\n{self.body[:limit]}"
        super().__init__(message)


class DownloadRestrictedError(CurseForgeError):
    """The file's author has disabled third-party downloads."""


class NetworkError(CurseForgeError):
    """The request never produced a response (timeout, refused connection, DNS)."""

    def __init__(self, method: str, url: str, cause: BaseException):
        self.method = method
        self.url = url
        self.cause = cause
        detail = str(cause)
        message = f"{method} {url} failed: {type(cause).__name__}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
