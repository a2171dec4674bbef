"""Shared fixtures for portal tests."""

import os

# AuthSettings requires both secrets. Set test defaults before any
# AuthSettings is instantiated.
os.environ.setdefault("AUTH_ADMIN_SECRET", "test-secret")
os.environ.setdefault("AUTH_ADMIN_PASSKEY", "test-passkey")
