"""Runtime configuration for the occurrence engine, read from the environment."""
import os
from dotenv import load_dotenv

load_dotenv()

ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")

# Zone used to decide what "today" is
APP_TIMEZONE = os.environ.get("APP_TIMEZONE", "UTC")

# How far ahead occurrences are materialized
HORIZON_WEEKS = int(os.environ.get("OCCURRENCE_HORIZON_WEEKS", "8"))

# Retention window for the cleanup pass
RETENTION_DAYS = int(os.environ.get("OCCURRENCE_RETENTION_DAYS", "90"))

SWEEP_INTERVAL_SECONDS = int(os.environ.get("SWEEP_INTERVAL_SECONDS", "3600"))

AUTH_SECRET = os.environ.get("AUTH_SECRET", "change-me-in-production")
AUTH_ALGORITHM = os.environ.get("AUTH_ALGORITHM", "HS256")
