# ==============================================================================
# config.py
# ------------------------------------------------------------------------------
# Configuration settings for the Flask application.
# Uses environment variables so deployment-specific values stay out of the code.
# ==============================================================================

import os
from dotenv import load_dotenv

# Determine the absolute path of the project directory
basedir = os.path.abspath(os.path.dirname(__file__))

# Load environment variables from a .env file located in the project root
load_dotenv(os.path.join(basedir, '.env'))

class Config:
    """
    Base configuration class. Contains default settings that can be overridden
    by environment-specific configurations.
    """
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-should-really-set-a-secret-key-in-your-env-file'

    # --- Database Configuration ---
    # The hosted datastore URL comes from the environment; SQLite is the local fallback.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance/app.db')

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Commission Engine ---
    # The agent that absorbs whatever net payout is left at each location.
    REMAINDER_PARTY_NAME = os.environ.get('REMAINDER_PARTY_NAME') or 'Merchant Hero'

    # How many agents the dashboard endpoint lists.
    TOP_AGENT_COUNT = int(os.environ.get('TOP_AGENT_COUNT') or 4)

    # Log level for the engine's per-location audit trail.
    ENGINE_LOG_LEVEL = os.environ.get('ENGINE_LOG_LEVEL') or 'INFO'


class TestConfig(Config):
    """Configuration used by the test suite: in-memory database."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
