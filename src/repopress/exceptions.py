from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Failure categories surfaced to callers of the content service."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"


class ContentError(Exception):
    """Base class for every failure raised by repopress."""

    kind: ErrorKind = ErrorKind.INTERNAL

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.UNAVAILABLE


class ConfigurationError(ContentError):
    pass


class ValidationError(ContentError):
    kind = ErrorKind.VALIDATION


class FrontMatterError(ValidationError):
    pass


class UnauthorizedError(ContentError):
    kind = ErrorKind.UNAUTHORIZED


@dataclass
class APIError(ContentError):
    """
    Failure reported by the remote repository API.

    GitHub error payloads look like:
        {
          "message": "Not Found",
          "documentation_url": "https://docs.github.com/rest/repos/contents#get-repository-content",
          "status": "404"
        }
    """

    status_code: int
    detail: str = ""
    path: Optional[str] = None          # repository path the call targeted
    errors: Any = None                  # nested "errors" list, if any
    help_url: Optional[str] = None      # value of "documentation_url"
    response_body: Any = None           # raw parsed JSON of the response

    def __post_init__(self) -> None:
        msg = self.detail or f"HTTP {self.status_code}"
        if self.path:
            msg = f"{msg} ({self.path})"
        super().__init__(msg)


# -------------------------------------------------
# Typed client-side exceptions
# -------------------------------------------------

class NotFoundError(APIError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(APIError):
    kind = ErrorKind.CONFLICT


class AlreadyExistsError(ConflictError):
    pass


class AuthenticationError(APIError):
    kind = ErrorKind.UNAUTHORIZED


class UnavailableError(APIError):
    kind = ErrorKind.UNAVAILABLE


# -------------------------------------------------
# Mapping helpers
# -------------------------------------------------

_STATUS_TO_EXCEPTION = {
    401: AuthenticationError,
    403: AuthenticationError,
    404: NotFoundError,
    409: ConflictError,
    429: UnavailableError,
    500: UnavailableError,
    502: UnavailableError,
    503: UnavailableError,
    504: UnavailableError,
}


def _pick_exception_class(status_code: int) -> type[APIError]:
    if status_code in _STATUS_TO_EXCEPTION:
        return _STATUS_TO_EXCEPTION[status_code]
    if 500 <= status_code < 600:
        return UnavailableError
    return APIError


def _format_errors(errors: Any) -> str:
    """
    Turn GitHub's nested "errors" list into a readable string.

    Shapes seen in the wild:
        [{"resource": "Commit", "field": "sha", "code": "invalid"}, ...]
        ["sha wasn't supplied"]
    """
    if isinstance(errors, str):
        return errors

    if isinstance(errors, list):
        parts = []
        for item in errors:
            if isinstance(item, dict):
                msg = item.get("message") or item.get("code") or str(item)
                field = item.get("field")
                parts.append(f"{field}: {msg}" if field else str(msg))
            else:
                parts.append(str(item))
        return "; ".join(parts)

    return str(errors)


def error_from_response(response, *, path: Optional[str] = None) -> APIError:
    """
    Build a concrete APIError subclass from a `requests.Response`.

    If the body is not JSON or doesn't carry a "message", we still
    build an error with whatever information we can.
    """

    status_code = response.status_code

    try:
        body = response.json()
    except Exception:
        # Non-JSON error
        return _pick_exception_class(status_code)(
            status_code=status_code,
            detail=response.text or f"HTTP {status_code}",
            path=path,
        )

    if not isinstance(body, dict):
        return _pick_exception_class(status_code)(
            status_code=status_code,
            detail=str(body),
            path=path,
            response_body=body,
        )

    detail = body.get("message") or ""
    errors = body.get("errors")
    if errors:
        formatted = _format_errors(errors)
        detail = f"{detail}: {formatted}" if detail else formatted

    exc_cls = _pick_exception_class(status_code)

    return exc_cls(
        status_code=status_code,
        detail=detail,
        path=path,
        errors=errors,
        help_url=body.get("documentation_url"),
        response_body=body,
    )


def raise_for_api_error(response, *, path: Optional[str] = None) -> None:
    """
    Inspect a `requests.Response` and raise a suitable APIError subclass
    if the repository API indicates failure.

    Usage in the client:

        resp = self.get(\"contents/data/md/hello.md\")
        raise_for_api_error(resp, path=\"data/md/hello.md\")
        data = resp.json()
    """
    if response.status_code >= 400:
        raise error_from_response(response, path=path)


def describe(exc: BaseException) -> Dict[str, Any]:
    """Return a loggable summary of an exception."""
    kind = getattr(exc, "kind", ErrorKind.INTERNAL)
    info: Dict[str, Any] = {"kind": kind.value, "message": str(exc)}
    status = getattr(exc, "status_code", None)
    if status is not None:
        info["status_code"] = status
    return info
