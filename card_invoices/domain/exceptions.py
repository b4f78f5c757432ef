"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidArgumentError(DomainException):
    """Caller passed a day-of-month, date, or amount the engine cannot use"""

    pass
