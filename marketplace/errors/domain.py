class DomainError(Exception):
    """Base class for errors raised by the subscription domain."""

    code = "domain_error"


class InvalidPaymentInput(DomainError):
    """The payment payload does not match the chosen payment method."""

    code = "invalid_payment_input"


class NotFound(DomainError):
    code = "not_found"


class InvalidStateTransition(DomainError):
    code = "invalid_state_transition"


class ExternalProviderError(DomainError):
    """
    A payment provider call failed.

    Carries the provider operation and the provider's own error code so the
    caller can tell a declined card from an outage. Never retried here.
    """

    code = "external_provider_error"

    def __init__(self, message, operation=None, provider_code=None):
        super().__init__(message)
        self.operation = operation
        self.provider_code = provider_code


class TrialNotAvailable(DomainError):
    """The account's email, company, VAT number or UTR already had a trial."""

    code = "trial_not_available"
