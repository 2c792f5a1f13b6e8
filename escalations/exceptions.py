# escalations/exceptions.py


class EscalationError(Exception):
    """Base class for escalation engine failures."""


class GraphError(EscalationError):
    """The list-store API could not be reached or answered with an error."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class StoreError(EscalationError):
    """A read or write against one of the lists failed."""
