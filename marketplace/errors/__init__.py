from .domain import (
    DomainError,
    ExternalProviderError,
    InvalidPaymentInput,
    InvalidStateTransition,
    NotFound,
    TrialNotAvailable,
)

__all__ = [
    "DomainError",
    "ExternalProviderError",
    "InvalidPaymentInput",
    "InvalidStateTransition",
    "NotFound",
    "TrialNotAvailable",
]
