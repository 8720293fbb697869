import os

from dotenv import load_dotenv

load_dotenv()

from marketplace import create_app  # noqa: E402

config = os.getenv("APP_ENV", "production")

app = create_app(config)
celery_app = app.extensions["celery"]
