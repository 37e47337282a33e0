"""Custom exception classes for the storage gateway."""


class GatewayError(Exception):
    """
    Base exception class for all gateway errors.
    """
    pass


class ContainerNotFoundError(GatewayError):
    """
    Raised when a requested container does not exist.
    """
    pass


class ObjectNotFoundError(GatewayError):
    """
    Raised when a requested object does not exist.
    """
    pass


class ContainerExistsError(GatewayError):
    """
    Raised when creating a container whose name is taken.
    """
    pass


class InvalidContainerNameError(GatewayError):
    """
    Raised when a container name fails validation.
    """
    pass


class InvalidObjectKeyError(GatewayError):
    """
    Raised when an object key fails validation.
    """
    pass


class AuthenticationFailedError(GatewayError):
    """
    Raised when the account key is missing or wrong, or a link signature does not verify.
    """
    pass


class LinkExpiredError(GatewayError):
    """
    Raised when a signed link is used after its expiry.
    """
    pass
