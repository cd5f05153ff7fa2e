"""SDR Desk — Error Taxonomy.

Only ValidationError and PersistenceError are fatal to a submission. Failures
while saving meeting details, writing the audit entry or sending the email are
logged and surfaced as status fields on the result instead.
"""

from typing import List, Optional


class SubmissionError(Exception):
    """Base class for errors that abort a report submission."""

    status_code = 500


class ValidationError(SubmissionError):
    """The payload is malformed or incomplete. Shown to the caller verbatim."""

    status_code = 400

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Invalid payload: " + ", ".join(self.errors))


class PersistenceError(SubmissionError):
    """The primary report write failed. Detail stays in server logs."""

    public_message = "Failed to save report"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(self.public_message)


class GatewayError(Exception):
    """A read or write against the relational store failed."""

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")


class NotifierError(Exception):
    """The email provider rejected the message or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
