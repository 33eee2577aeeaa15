from __future__ import annotations


class RepositoryError(Exception):
    """Base class for failures outside the Response enumeration."""


class StoreError(RepositoryError):
    """
    The underlying store failed unexpectedly (connection loss, constraint
    violation that could not be mapped to a Response, ...).

    The transaction has already been rolled back when this is raised; the
    repository layer only retries a work item write that lost a race on a tag
    name.
    """

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause
