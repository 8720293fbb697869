from .base import BaseConfig


class DevelopmentConfig(BaseConfig):
    """
    Development configuration.
    """

    DEBUG = True

    SECRET_KEY = "dev-secret-key"

    LOG_LEVEL = "DEBUG"
