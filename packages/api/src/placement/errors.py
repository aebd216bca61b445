# This project was developed with assistance from AI tools.
"""Workflow error taxonomy.

Services raise these; ``main.py`` maps each class to an RFC 7807 response.
None of them implies a state change -- a raised error always means the
owning records were left as they were.
"""


class WorkflowError(Exception):
    """Base class for expected workflow failures."""

    status_code = 400
    problem_type = "about:blank"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class WorkflowValidationError(WorkflowError):
    """Missing or invalid input (non-positive amount, mismatched payment, ...)."""

    problem_type = "urn:placement:validation-error"


class NotFoundError(WorkflowError):
    """Submission, quote, carrier, or agency does not exist or is out of scope."""

    status_code = 404
    problem_type = "urn:placement:not-found"


class ConflictError(WorkflowError):
    """Duplicate or already-applied action, including lost write races."""

    status_code = 409
    problem_type = "urn:placement:conflict"


class PreconditionError(WorkflowError):
    """A workflow gate is closed for the requested action."""

    status_code = 409
    problem_type = "urn:placement:precondition-failed"

    def __init__(self, unmet_condition: str, detail: str):
        super().__init__(detail)
        self.unmet_condition = unmet_condition


class CollaboratorFailure(WorkflowError):
    """An external service (tax, renderer, e-sign, payment, notification) failed."""

    status_code = 502
    problem_type = "urn:placement:collaborator-failure"

    def __init__(self, collaborator: str, detail: str):
        super().__init__(detail)
        self.collaborator = collaborator
