"""Exceptions raised by the workflow and its collaborators."""


class NovaScriptError(Exception):
    """Base class for all NovaScript errors."""


class WorkflowError(NovaScriptError):
    """Raised by a workflow step; aborts the run."""


class NoSignalError(WorkflowError):
    """The fetch step returned no articles."""

    def __init__(self, message: str = "No signal detected.") -> None:
        super().__init__(message)


class CredentialInvalidationError(WorkflowError):
    """The backend rejected the selected credential; it must be reselected."""


class GenericStepError(WorkflowError):
    """A backend step returned output the workflow cannot use."""


class InvalidTransitionError(NovaScriptError):
    def __init__(self, current, target) -> None:
        super().__init__(f"Cannot move from stage {current.value!r} to {target.value!r}.")
        self.current = current
        self.target = target


class WorkflowBusyError(NovaScriptError):
    """A run is already in progress."""


class CredentialRequiredError(NovaScriptError):
    """No credential is selected and none can be selected here."""
