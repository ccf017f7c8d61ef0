import os
from dotenv import load_dotenv

load_dotenv(override=True)

class Config:
    """
    Base configuration for Naked Mailing List.
    Projects should provide database paths via environment variables.
    """
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Database path - use environment variable or fallback to DB_DIR
    NML_DB = os.getenv('NML_DB', os.path.join(DB_DIR, "mailing_list.db"))

    # Prepended to every table name (the WordPress-style "wp_" prefix)
    NML_TABLE_PREFIX = os.getenv('NML_TABLE_PREFIX', '')

    # Seconds a cached subscriber listing stays valid
    NML_SUBSCRIBER_CACHE_TTL = int(os.getenv('NML_SUBSCRIBER_CACHE_TTL', '3600'))

    # Days of app_logs history kept by LoggingService.cleanup_old_logs
    NML_LOG_RETENTION_DAYS = int(os.getenv('NML_LOG_RETENTION_DAYS', '30'))


def get_config_value(key, default=None):
    """Resolve a setting: Flask app config -> Config -> environment"""
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val is not None:
            return val
    except RuntimeError:
        pass
    val = getattr(Config, key, None)
    if val is not None:
        return val
    return os.getenv(key, default)
