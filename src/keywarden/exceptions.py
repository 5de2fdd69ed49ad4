"""Custom exceptions for keywarden."""


class KeywardenError(Exception):
    """Base exception for all keywarden errors."""

    pass


class StoreError(KeywardenError):
    """Base exception for credential store errors."""

    def __init__(self, message: str, path: str = None):
        """
        Initialize store error.

        Args:
            message: Error message
            path: Optional path of the store file involved
        """
        super().__init__(message)
        self.path = path


class StoreReadError(StoreError):
    """Raised when the credential store is missing or cannot be parsed."""

    pass


class StoreWriteError(StoreError):
    """Raised when a locked rewrite of the credential store fails."""

    pass


class ProbeError(KeywardenError):
    """Raised for network or protocol failures while probing a credential."""

    def __init__(self, message: str, status_code: int = None):
        """
        Initialize probe error.

        Args:
            message: Error message
            status_code: Optional HTTP status code
        """
        super().__init__(message)
        self.status_code = status_code
