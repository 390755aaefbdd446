"""Development configuration."""
import os

from .base import Config

class DevelopmentConfig(Config):
    """Development configuration class."""
    DEBUG = True
    TESTING = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or \
        'sqlite:///planora_dev.db'
    SQLALCHEMY_ECHO = True

    # Students may check in before the session starts while developing
    ATTENDANCE_ALLOW_EARLY_CHECKIN = True

    LOG_LEVEL = 'DEBUG'
