"""Exception types shared by the calculators, the data wizard and the remote clients."""


class SaidiStatError(Exception):
    """Base class for every error raised by the package."""


class InvalidInputError(SaidiStatError, ValueError):
    """User supplied values that a calculator cannot work with."""


class EmptyInputError(InvalidInputError):
    """Free-text input contained no valid number."""

    def __init__(self, message="Please enter valid numeric data."):
        super().__init__(message)


class WizardTransitionError(InvalidInputError):
    """The analysis wizard was asked to move somewhere its guards forbid."""


class IngestionError(InvalidInputError):
    """An uploaded data file could not be read."""


class ConfigurationError(SaidiStatError):
    """Environment configuration is missing or malformed."""


class CompletionError(SaidiStatError):
    """The remote writing assistant did not return a usable answer."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(CompletionError):
    def __init__(self, message="Rate limit exceeded, please try again later."):
        super().__init__(message, status_code=429)


class QuotaExceededError(CompletionError):
    def __init__(self, message="Insufficient credits, please top up your account."):
        super().__init__(message, status_code=402)
