"""
Flask extensions initialization module.
"""

import logging

from celery import Celery, Task
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
migrate = Migrate()

logger = logging.getLogger(__name__)


def init_extensions(app):
    """Initialize all Flask extensions."""
    db.init_app(app)
    logger.info("SQLAlchemy initialized")

    migrate.init_app(app, db)
    logger.info("Flask-Migrate initialized")

    init_celery(app)


def init_celery(app):
    """
    Bind a Celery app to the Flask app so every task runs inside
    an application context.
    """

    class FlaskTask(Task):
        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery_app = Celery(app.name, task_cls=FlaskTask)
    celery_app.config_from_object(app.config["CELERY"])
    celery_app.conf.beat_schedule = {
        "process-trial-ends": {
            "task": "marketplace.tasks.subscription_tasks.process_trial_ends",
            "schedule": 3600.0,
        },
    }
    celery_app.set_default()
    app.extensions["celery"] = celery_app
    logger.info("Celery initialized")
    return celery_app
