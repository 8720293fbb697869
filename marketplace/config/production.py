from .base import BaseConfig, ConfigurationError


class ProductionConfig(BaseConfig):
    """
    Production configuration.
    """

    DEBUG = False

    @classmethod
    def validate(cls, flags):
        # MUST be set via environment variable in real production
        missing = []
        if not cls.SECRET_KEY:
            missing.append("SECRET_KEY")
        if flags.ENABLE_STRIPE and not cls.STRIPE_SECRET_KEY:
            missing.append("STRIPE_SECRET_KEY")

        if missing:
            raise ConfigurationError(
                f"Missing required production settings: {', '.join(missing)}"
            )
