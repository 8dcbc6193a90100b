from __future__ import annotations


class BuilderError(Exception):
    """Base class for store builder failures."""


class InvalidTransition(BuilderError):
    def __init__(self, step: str, event: str) -> None:
        super().__init__(f"Step '{step}' does not accept '{event}'")
        self.step = step
        self.event = event


class StepUnreachable(BuilderError):
    """A step with no entry in the transition tables was reached."""


class InactiveWidget(BuilderError):
    def __init__(self, action: str, step: str) -> None:
        super().__init__(f"'{action}' is not available at step '{step}'")
        self.action = action
        self.step = step


class BackendError(BuilderError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class UploadError(BackendError):
    pass


class CreationError(BackendError):
    pass
