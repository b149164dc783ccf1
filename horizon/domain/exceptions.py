"""Domain-specific exceptions"""


class HorizonError(Exception):
    """Base exception for the application"""

    pass


class AuthProviderError(HorizonError):
    """Appwrite returned an error or is unavailable"""

    pass


class NotAuthenticatedError(AuthProviderError):
    """No session, an expired session, or a guest-scoped session"""

    pass


class NotFoundError(HorizonError):
    """Requested document does not exist"""

    pass


class AggregatorError(HorizonError):
    """Plaid returned an error or is unavailable"""

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code


class ProcessorError(HorizonError):
    """Dwolla returned an error or is unavailable"""

    pass


class SignUpError(HorizonError):
    """Account creation failed part way through"""

    pass


class TransferError(HorizonError):
    """Money movement could not be initiated"""

    pass


class ForbiddenError(HorizonError):
    """Resource belongs to a different user"""

    pass


class UnrecordedTransferError(TransferError):
    """Dwolla accepted the transfer but the record could not be written"""

    def __init__(self, message: str, transfer_url: str):
        super().__init__(message)
        self.transfer_url = transfer_url
