"""hubgate exception classes."""

import platform
import sys
import traceback
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

ISSUE_TRACKER_URL = "https://github.com/hubgate/hubgate/issues/new"


class HubGateError(Exception):
    """Base exception for all hubgate errors."""

    def __init__(
        self, code: str, message: str, request_id: str | None = None
    ) -> None:
        self.code = code
        self.message = message
        self.request_id = request_id
        super().__init__(f"[{code}] {message}")


class ConfigurationError(HubGateError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class HelperNotInstalledError(HubGateError):
    """Raised when the helper executable cannot be found on PATH."""

    def __init__(self, executable: str) -> None:
        super().__init__(
            "HELPER_NOT_INSTALLED",
            f"{executable} is not installed or not on PATH; "
            "install it or set HUBGATE_HELPER",
        )
        self.executable = executable


class HelperNotInitializedError(HubGateError):
    """Raised when the helper's per-user configuration file is missing."""

    def __init__(self, executable: str, config_file: str) -> None:
        super().__init__(
            "HELPER_NOT_INITIALIZED",
            f"{executable} has not been initialized ({config_file} is missing); "
            f"run `{executable} api user` once to authenticate",
        )
        self.executable = executable
        self.config_file = config_file


class HelperTimeoutError(HubGateError):
    """Raised when a helper invocation exceeds its deadline."""

    def __init__(self, args: list[str], timeout: float) -> None:
        super().__init__(
            "HELPER_TIMEOUT",
            f"{' '.join(args)} did not finish within {timeout:g}s",
        )
        self.args_list = args
        self.timeout = timeout


class HelperCommandError(HubGateError):
    """Raised when a helper invocation exits with a non-zero status."""

    def __init__(self, args: list[str], returncode: int, stderr: str | None) -> None:
        detail = (stderr or "").strip()
        message = f"{' '.join(args)} exited with status {returncode}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__("HELPER_FAILED", message)
        self.returncode = returncode
        self.stderr = stderr


class IntegrityError(HubGateError):
    """Raised when internal state is malformed.

    This is the only error class meant to halt the surrounding operation
    outright. ``context`` carries whatever state is needed to diagnose it.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__("INTEGRITY_ERROR", message)
        self.context = context or {}


class AuthenticationError(HubGateError):
    """Raised when the API rejects the credentials (401)."""

    pass


class AuthorizationError(HubGateError):
    """Raised when access is denied (403)."""

    pass


class NotFoundError(HubGateError):
    """Raised when a resource is not found (404)."""

    pass


class RateLimitedError(HubGateError):
    """Raised when rate limited."""

    def __init__(
        self,
        code: str,
        message: str,
        retry_after: int,
        request_id: str | None = None,
    ) -> None:
        super().__init__(code, message, request_id)
        self.retry_after = retry_after


class ValidationError(HubGateError):
    """Raised on other client errors (4xx)."""

    pass


class ServerError(HubGateError):
    """Raised on server errors (5xx) and connection failures."""

    pass


@dataclass
class ErrorReport:
    """Diagnostic bundle for an integrity failure."""

    title: str
    body: str
    issue_url: str


def build_error_report(
    exc: BaseException, context: dict[str, Any] | None = None
) -> ErrorReport:
    """
    Build a report for ``exc`` that a user can file against the issue tracker.

    Args:
        exc: The exception to report; its traceback is included when present
        context: Extra diagnostic values (merged over ``exc.context``)

    Returns:
        ErrorReport with a markdown body and a pre-filled issue URL
    """
    from hubgate import __version__

    details: dict[str, Any] = {}
    if isinstance(exc, IntegrityError):
        details.update(exc.context)
    if context:
        details.update(context)

    stack = "".join(
        traceback.format_exception(type(exc), exc, exc.__traceback__)
    )
    title = f"{type(exc).__name__}: {getattr(exc, 'message', str(exc))}"

    lines = [
        "## Environment",
        "",
        f"- hubgate: {__version__}",
        f"- python: {sys.version.split()[0]}",
        f"- platform: {platform.platform()}",
        "",
        "## Context",
        "",
    ]
    if details:
        lines.extend(f"- {key}: {value!r}" for key, value in sorted(details.items()))
    else:
        lines.append("(none)")
    lines.extend(["", "## Traceback", "", "```", stack.rstrip(), "```"])
    body = "\n".join(lines)

    issue_url = f"{ISSUE_TRACKER_URL}?{urlencode({'title': title, 'body': body})}"
    return ErrorReport(title=title, body=body, issue_url=issue_url)
