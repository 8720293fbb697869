import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from marketplace.errors import (
    DomainError,
    ExternalProviderError,
    InvalidPaymentInput,
    InvalidStateTransition,
    NotFound,
    TrialNotAvailable,
)

logger = logging.getLogger(__name__)

DOMAIN_STATUS_CODES = {
    InvalidPaymentInput: 400,
    NotFound: 404,
    InvalidStateTransition: 409,
    TrialNotAvailable: 409,
    ExternalProviderError: 502,
}


def _status_for(error):
    for error_type, status_code in DOMAIN_STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 400


def register_error_handlers(app):
    @app.errorhandler(DomainError)
    def handle_domain_error(e):
        """
        Maps domain errors raised by the billing layer to JSON responses.
        """
        status_code = _status_for(e)
        response = {
            "error": e.code,
            "message": str(e),
            "status_code": status_code,
        }
        if isinstance(e, ExternalProviderError):
            logger.warning(
                "Payment provider call failed",
                extra={"operation": e.operation, "provider_code": e.provider_code},
            )
            response["message"] = "Payment provider request failed"
        return jsonify(response), status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """
        Handles known HTTP errors (404, 401, 403, etc.)
        """
        response = {
            "error": e.name,
            "message": e.description,
            "status_code": e.code,
        }
        return jsonify(response), e.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        """
        Handles all unexpected server errors
        Prevents stack trace leakage in production
        """
        logger.exception("Unhandled exception")

        response = {
            "error": "Internal Server Error",
            "message": "Something went wrong. Please try again later.",
            "status_code": 500,
        }
        return jsonify(response), 500
