"""Error taxonomy for the sync engine and helpers to explain failures to users."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests


class SyncError(Exception):
    """Base class for every error raised or reported by the sync engine."""

    def __init__(
        self,
        message: str,
        error_code: str = "SYNC_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(SyncError):
    """Invalid sync configuration or call arguments. Raised before any I/O."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details={"field": field} if field else None,
        )
        self.field = field


class TransportError(SyncError):
    """A destination or source call failed (non-2xx, network, bad payload)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(
            message=message,
            error_code="TRANSPORT_ERROR",
            details={"status_code": status_code} if status_code else None,
        )
        self.status_code = status_code
        self.body = body
        self.cause = cause

    @classmethod
    def from_response(cls, response: requests.Response) -> "TransportError":
        """Build an error from a non-2xx response."""
        body = response.text
        return cls(
            f"HTTP {response.status_code}: {body[:500]}",
            status_code=response.status_code,
            body=body,
        )

    @classmethod
    def from_exception(cls, exc: BaseException) -> "TransportError":
        """Build an error from a requests/JSON exception."""
        if isinstance(exc, requests.exceptions.HTTPError) and exc.response is not None:
            error = cls.from_response(exc.response)
            error.cause = exc
            return error
        return cls(str(exc) or exc.__class__.__name__, cause=exc)


class SchemaEvolutionWarning(UserWarning):
    """Column creation failed. Reported, never counted as a sync error."""

    def __init__(self, columns: List[str], error: Optional[SyncError] = None):
        self.columns = columns
        self.error = error
        reason = error.message if error else "unknown error"
        super().__init__(f"Could not create columns {', '.join(columns)}: {reason}")


@dataclass
class ErrorInfo:
    """Human readable explanation of a failure."""
    kind: str
    title: str
    message: str
    explanation: str = ""
    solutions: List[str] = field(default_factory=list)
    technical_details: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "title": self.title,
            "message": self.message,
            "explanation": self.explanation,
            "solutions": self.solutions,
            "technical_details": self.technical_details,
        }


_DESTINATION = "destination"


def _status_of(error: BaseException) -> Optional[int]:
    if isinstance(error, TransportError):
        return error.status_code
    response = getattr(error, "response", None)
    if response is not None:
        return getattr(response, "status_code", None)
    return None


def _root_cause(error: BaseException) -> BaseException:
    if isinstance(error, TransportError) and error.cause is not None:
        return error.cause
    return error


def describe_error(error: BaseException, context: str = "general") -> ErrorInfo:
    """
    Classify an error and suggest what to do about it.

    Args:
        error: The exception to explain
        context: "destination", "source" or "general"; tailors the solutions

    Returns:
        ErrorInfo describing the failure
    """
    cause = _root_cause(error)
    status = _status_of(error)
    text = str(error) or error.__class__.__name__
    on_destination = context == _DESTINATION

    if isinstance(cause, requests.exceptions.Timeout):
        return ErrorInfo(
            kind="timeout",
            title="Request timed out",
            message="The server took too long to answer",
            solutions=["Retry the sync later", "Check the server load and the network latency"],
            technical_details=text,
        )

    if isinstance(cause, requests.exceptions.ConnectionError):
        return ErrorInfo(
            kind="network",
            title="Network error",
            message="Could not reach the server",
            explanation="The connection was refused or the host could not be resolved.",
            solutions=[
                "Check the network connection",
                "Check the server URL" if not on_destination else "Check the Grist API URL",
            ],
            technical_details=text,
        )

    if isinstance(cause, (json.JSONDecodeError, ValueError)) and status is None:
        return ErrorInfo(
            kind="invalid_json",
            title="Invalid response",
            message="The server answered with something that is not valid JSON",
            solutions=["Check that the URL points at a JSON API"],
            technical_details=text,
        )

    if status == 401:
        return ErrorInfo(
            kind="unauthorized",
            title="Unauthorized (401)",
            message=(
                "Authentication required: the Grist API token is missing or was rejected"
                if on_destination
                else "Authentication required: the source API rejected the request credentials"
            ),
            explanation=(
                "The Grist document is private." if on_destination
                else "The source API requires credentials."
            ),
            solutions=(
                ["Set an API token for the Grist document", "Check the token has not been revoked"]
                if on_destination
                else ["Add the authentication header to the source configuration"]
            ),
            technical_details=text,
        )

    if status == 403:
        return ErrorInfo(
            kind="forbidden",
            title="Forbidden (403)",
            message="Permissions are insufficient for this operation",
            explanation="The credentials are valid but lack the required permissions.",
            solutions=(
                ["Give the token's owner edit access to the document"]
                if on_destination
                else ["Check the permissions of the source API key"]
            ),
            technical_details=text,
        )

    if status == 404:
        return ErrorInfo(
            kind="not_found",
            title="Not found (404)",
            message="The requested resource does not exist",
            explanation=(
                "The document id or the table id is wrong." if on_destination
                else "The source URL is wrong."
            ),
            solutions=(
                ["Check the document id", "Check the table id"]
                if on_destination
                else ["Check the source URL"]
            ),
            technical_details=text,
        )

    if status == 422:
        return ErrorInfo(
            kind="unprocessable",
            title="Unprocessable entity (422)",
            message="The server rejected the data during validation",
            solutions=["Check the column types match the values being sent"],
            technical_details=text,
        )

    if status is not None and 500 <= status < 600:
        return ErrorInfo(
            kind="server_error",
            title=f"Server error ({status})",
            message="The server failed to handle the request",
            solutions=["Retry the sync later"],
            technical_details=text,
        )

    return ErrorInfo(
        kind="unknown",
        title=f"HTTP error ({status})" if status else "Unexpected error",
        message=text,
        solutions=[],
        technical_details=text,
    )


def format_error_short(info: ErrorInfo) -> str:
    """Message plus the first suggested solution, for result details."""
    if info.solutions:
        return f"{info.message} - {info.solutions[0]}"
    return info.message


def format_error_for_log(info: ErrorInfo) -> str:
    """Multi-line rendering with every solution."""
    lines = [f"{info.title}: {info.message}"]
    if info.explanation:
        lines.append(info.explanation)
    for solution in info.solutions:
        lines.append(f"  - {solution}")
    if info.technical_details and info.technical_details != info.message:
        lines.append(f"Details: {info.technical_details}")
    return "\n".join(lines)
