"""Domain models for the contract table form.

Tables, recipient entries and their assignments, structure templates, and
the payload sent to the workflow webhook.
"""

from .assignment import RecipientAssignment, Role
from .email_entry import EmailEntry
from .error_record import ErrorRecord
from .structure import StructureDefinition
from .submission import DocumentRef, SubmissionPayload, SubmissionResult, TablePayload
from .table import Table

__all__ = [
    # Templates
    "StructureDefinition",
    # Session state
    "Table",
    "EmailEntry",
    "RecipientAssignment",
    "Role",
    # Submission
    "DocumentRef",
    "TablePayload",
    "SubmissionPayload",
    "SubmissionResult",
    # Logging
    "ErrorRecord",
]
