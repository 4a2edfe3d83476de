"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidDateKeyError(DomainException, ValueError):
    """Value cannot be read as a calendar date key"""

    pass


class InvalidTransactionDataError(DomainException, ValueError):
    """Transaction record is malformed beyond recovery"""

    pass
