"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class AuthRequiredError(DomainException):
    """No encryption key is available, so no store can be read"""

    pass


class PriceAPIError(DomainException):
    """BTC price API returned an error or is unavailable"""

    pass


class EntityNotFoundError(DomainException):
    """Referenced card, loan, installment or asset does not exist"""

    pass
