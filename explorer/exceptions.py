"""Custom exception classes for the explorer core."""


class ExplorerError(Exception):
    """
    Base exception class for all store and transfer errors.
    """
    pass


class NotFoundError(ExplorerError):
    """
    Raised when a container or object vanished between listing and action.
    """
    pass


class AuthRejectedError(ExplorerError):
    """
    Raised when the store rejects the account credentials.
    """
    pass


class NetworkUnreachableError(ExplorerError):
    """
    Raised when the store host cannot be resolved or reached.
    """
    pass


class TransferFailedError(ExplorerError):
    """
    Raised when an individual upload, download, copy or delete call fails.
    """
    pass


class MalformedInputError(ExplorerError):
    """
    Raised when input is rejected before any store call is issued.
    """
    pass
