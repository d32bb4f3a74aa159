"""
Custom exceptions for nodebox repository operations.

Every fallible core operation signals its single error kind by raising one
of these classes. Callers can match on the class or on ``error_code``.
"""
from typing import Dict, List, Optional


class NodeboxError(Exception):
    """Base exception for all repository errors."""

    error_code = "NodeboxError"

    def __init__(self, message: str, error_code: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            error_code: Overrides the class level error code
        """
        if error_code:
            self.error_code = error_code
        self.message = message
        super().__init__(message)


class NodeNotFoundError(NodeboxError):
    """Raised when a node cannot be resolved by uuid or fid."""

    error_code = "NodeNotFoundError"

    def __init__(self, uuid: str) -> None:
        self.uuid = uuid
        super().__init__(f"Node not found: {uuid}")


class FolderNotFoundError(NodeboxError):
    """Raised when a parent reference does not point to a folder."""

    error_code = "FolderNotFoundError"

    def __init__(self, uuid: str) -> None:
        self.uuid = uuid
        super().__init__(f"Folder not found: {uuid}")


class SmartFolderNodeNotFoundError(NodeboxError):
    """Raised when evaluating something that is not a smart folder."""

    error_code = "SmartFolderNodeNotFoundError"

    def __init__(self, uuid: str) -> None:
        self.uuid = uuid
        super().__init__(f"Smart folder not found: {uuid}")


class ValidationError(NodeboxError):
    """
    Raised when a node fails structural or schema validation.

    Carries every violation found, keyed by field name.
    """

    error_code = "ValidationError"

    def __init__(self, errors: Dict[str, List[str]]) -> None:
        """
        Initialize the exception.

        Args:
            errors: Mapping of field name to the messages for that field
        """
        self.errors = errors
        details = "; ".join(
            f"{field}: {', '.join(msgs)}" for field, msgs in errors.items()
        )
        super().__init__(f"Validation failed: {details}")

    @classmethod
    def from_fields(cls, *fields: str) -> 'ValidationError':
        """Build an error flagging each field as invalid."""
        return cls({field: [f"invalid {field}"] for field in fields})


class AggregationFormulaError(NodeboxError):
    """Raised when an aggregation names a formula that is not registered."""

    error_code = "AggregationFormulaError"

    def __init__(self, formula: str) -> None:
        self.formula = formula
        super().__init__(f"Unknown aggregation formula: {formula}")


class ForbiddenError(NodeboxError):
    """Raised when a principal lacks the permission for an operation."""

    error_code = "ForbiddenError"

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class BadRequestError(NodeboxError):
    """Raised for structurally invalid requests."""

    error_code = "BadRequestError"


class UnknownError(NodeboxError):
    """Opaque wrapper around a collaborator failure (e.g. storage I/O)."""

    error_code = "UnknownError"

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        super().__init__(message)
