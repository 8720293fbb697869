import logging

from flask import Flask

from marketplace.config import get_config
from marketplace.config.feature_flags import feature_flags
from marketplace.error_handlers import register_error_handlers
from marketplace.extensions import init_extensions
from marketplace.logging_config import setup_logging
from marketplace.middleware.request_id import init_request_id_middleware
from marketplace.routes import register_blueprints
from marketplace.services.subscription_service import init_payment_provider

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """Application factory."""
    config_class = get_config(config_name)
    config_class.validate(feature_flags)

    app = Flask(__name__)
    app.config.from_object(config_class)

    # Request ID must be assigned before request logging runs
    init_request_id_middleware(app)
    setup_logging(app)

    init_extensions(app)
    init_payment_provider(app)

    register_blueprints(app)
    register_error_handlers(app)

    # Registers the Celery task against this app
    from marketplace.tasks import subscription_tasks  # noqa: F401

    logger.info("Application created", extra={"config": config_class.__name__})
    return app
