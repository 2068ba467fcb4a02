import os

# Retrieve enviroment variables from .env file

DATABASE_USER = os.environ.get("DATABASE_USER")
DATABASE_PASS = os.environ.get("DATABASE_PASS")
DATABASE_HOST = os.environ.get("DATABASE_HOST")
DATABASE_NAME = os.environ.get("DATABASE_NAME")

# Takes precedence over the DATABASE_* credentials when present
DATABASE_URL = os.environ.get("DATABASE_URL")

SECRET_KEY: str = os.environ.get("SECRET_KEY")
TOKEN_EXPIRATION_HOURS = int(os.environ.get("TOKEN_EXPIRATION_HOURS", 24))

APP_FRONTEND_URL = os.environ.get("APP_FRONTEND_URL", "http://localhost:5173")

USE_ASYNC_ENGINE = bool(int(os.environ.get("USE_ASYNC_ENGINE", False)))
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND")
CELERY_TASK_ALWAYS_EAGER = bool(int(os.environ.get("CELERY_TASK_ALWAYS_EAGER", False)))
TIMEZONE = os.environ.get("TIMEZONE", "Asia/Kolkata")

# Voting session
POST_WINDOW_SECONDS = int(os.environ.get("POST_WINDOW_SECONDS", 60))
TIMER_TICK_SECONDS = float(os.environ.get("TIMER_TICK_SECONDS", 1))
VOTE_MAX_RETRIES = int(os.environ.get("VOTE_MAX_RETRIES", 3))

LOG_PATH = os.environ.get("LOG_PATH")

ORIGINS: list = [
    origin.strip() for origin in os.environ.get("ORIGINS", "*").split(",")
]
