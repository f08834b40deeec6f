"""Custom exception classes for the Vault."""


class VaultException(Exception):
    """
    Base exception class for all Vault errors.
    """
    pass


class ValidationError(VaultException):
    """
    Raised when input is rejected: declared and detected content types
    disagree, or an identifier or paging argument is malformed.
    """
    pass


class FileRecordNotFoundError(VaultException):
    """
    Raised when a requested file id is not in the metadata index.
    """
    pass


class StorageError(VaultException):
    """
    Raised when the object store fails or is unreachable.
    """
    pass


class InternalError(VaultException):
    """
    Raised when a metadata index invariant is violated.
    """
    pass


class RecordConflictError(InternalError):
    """
    Raised when a record is created with a file id that is already indexed.
    """
    pass


class PayloadTooLargeError(VaultException):
    """
    Raised when an uploaded file exceeds the configured size limit.
    """
    pass
