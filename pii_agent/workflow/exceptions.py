class WorkflowError(Exception):
    """Base exception for all workflow-related errors."""


class InvalidTransitionError(WorkflowError):
    """Raised when a run attempts a phase change the state machine forbids."""


class AlreadyRunningError(WorkflowError):
    """Raised when a run is triggered while another one is in progress."""


class NotSupportedHereError(WorkflowError):
    """Raised when the current chat surface cannot be automated."""


class EmptyPromptError(WorkflowError):
    """Raised when there is no prompt text to protect."""


class DetectionFailedError(WorkflowError):
    """Raised when the detector could not scan the prompt."""


class SubstitutionFailedError(WorkflowError):
    """Raised when substitutes could not be generated or applied."""


class DispatchFailedError(WorkflowError):
    """Raised when no send affordance could be actuated."""


class ResponseTimeoutError(WorkflowError, TimeoutError):
    """Raised when no new response appeared before the wait timed out."""


class WorkflowCancelledError(WorkflowError):
    """Raised when a cancel signal is honoured mid-run."""
