"""Error taxonomy for workflow definition, execution, and collaborators.

Every error the engine records carries a step id (when one applies) so it
can be written into an execution's error list without extra bookkeeping.
"""

from __future__ import annotations


class PromptweaveError(Exception):
    """Base class for all promptweave errors."""

    def __init__(self, message: str, *, step_id: str = "", hint: str = "") -> None:
        self.step_id = step_id
        self.hint = hint
        super().__init__(message)


class ValidationError(PromptweaveError):
    """A record is malformed and was not persisted."""

    def __init__(self, message: str, *, errors: list[str] | None = None, hint: str = "") -> None:
        self.errors = errors or [message]
        super().__init__(message, hint=hint)


class ExecutionError(PromptweaveError):
    """A step handler failed."""


class StepTimeoutError(PromptweaveError, TimeoutError):
    """A step exceeded its declared timeout."""


class DeadlockError(PromptweaveError):
    """No step is ready but the workflow is not finished."""


class NotFoundError(PromptweaveError):
    """Unknown agent, workflow, orchestration, or execution id."""

    def __init__(self, kind: str, record_id: str, *, step_id: str = "") -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}", step_id=step_id)


class ExternalServiceError(PromptweaveError):
    """A text-generation or API-call collaborator failed."""

    def __init__(
        self,
        message: str,
        *,
        service: str = "",
        status_code: int | None = None,
        hint: str = "",
    ) -> None:
        self.service = service
        self.status_code = status_code
        super().__init__(message, hint=hint)


_STATUS_MESSAGES: dict[int, tuple[str, str]] = {
    400: ("The service rejected the request.", "Check the request body and parameters."),
    401: ("Authentication failed.", "Check the configured API key."),
    403: ("Access denied.", "Verify the credentials have permission for this resource."),
    404: ("Resource not found.", "Check the URL or model name."),
    402: ("Insufficient credits or quota.", "Add credits on the provider's billing page."),
    408: ("The service timed out.", "Try again in a moment."),
    422: ("The service rejected the request payload.", ""),
    429: ("Rate limit exceeded.", "Wait a moment and try again."),
    500: ("Internal server error.", "Try again in a moment."),
    502: ("Bad gateway.", "Try again in a moment."),
    503: ("Service temporarily unavailable.", "Try again in a moment."),
    529: ("Service overloaded.", "Try again in a moment."),
}


def raise_for_status(status_code: int, service: str, target: str, detail: str = "") -> None:
    """Raise an ExternalServiceError for any non-2xx status code.

    Call this instead of httpx's resp.raise_for_status() so collaborator
    failures surface with a status-specific message.
    """
    if 200 <= status_code < 300:
        return

    message, hint = _STATUS_MESSAGES.get(
        status_code,
        (f"Unexpected HTTP {status_code}.", ""),
    )
    full_message = f"[{service}] {message} (HTTP {status_code}, {target})"
    if detail:
        short = detail[:200].replace("\n", " ")
        full_message += f": {short}"

    raise ExternalServiceError(full_message, service=service, status_code=status_code, hint=hint)
