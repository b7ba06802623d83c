"""Exceptions raised by GitStack and rendered as ``{"error": ...}`` responses."""

ExtraInfoType = dict[str, str | None]


class GitStackError(Exception):
    """Base error. ``message`` is what the browser sees."""

    status_code: int = 500

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        self.message = message
        self.extra_info = extra_info or {}
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class BadRequestError(GitStackError):
    """The request was missing or carried invalid input."""

    status_code = 400


class AuthenticationRequiredError(GitStackError):
    """No signed-in user is attached to the session."""

    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class NotFoundError(GitStackError):
    """The resource could not be found."""

    status_code = 404


class UpstreamError(GitStackError):
    """A call to the GitHub API failed."""

    status_code = 500


class ConfigurationError(GitStackError):
    """A required setting is missing."""

    status_code = 500
