"""Configuration settings for the lab report service."""

import os


def get_postgres_uri():
    """Get PostgreSQL connection URI from environment variables."""
    host = os.environ.get("DB_HOST", "localhost")
    port = os.environ.get("DB_PORT", 5433 if host == "localhost" else 5432)
    password = os.environ.get("DB_PASSWORD", "labflow_pass")
    user = os.environ.get("DB_USER", "labflow_user")
    db_name = os.environ.get("DB_NAME", "labflow_clinic")
    return f"postgresql://{user}:{password}@{host}:{port}/{db_name}"


def get_api_url():
    """Get API URL from environment variables."""
    host = os.environ.get("API_HOST", "localhost")
    port = os.environ.get("API_PORT", 8000)
    return f"http://{host}:{port}"


def get_default_window_days():
    """Length of the trailing window used when a report has no date range."""
    return int(os.environ.get("REPORT_DEFAULT_WINDOW_DAYS", "30"))


def get_log_level():
    return os.environ.get("LOG_LEVEL", "INFO").upper()
