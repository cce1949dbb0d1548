import os

# Set test mode flag BEFORE any imports that might load config
os.environ.setdefault("PYTEST_RUNNING", "1")
os.environ.setdefault("APP_ENVIRONMENT", "test")

from tests.fixtures import *  # noqa: F401,F403,E402
