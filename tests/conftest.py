"""Test configuration shared by all test modules."""

import os

# Settings are loaded at import time; give them a throwaway database and secret.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-for-unit-tests-only")
os.environ.setdefault("AUTHORIZED_BROADCAST_IDS", "9000")
