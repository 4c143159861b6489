"""
Main conftest file that imports and re-exports all fixtures from modular files.
This approach improves maintainability by organizing fixtures into logical modules.
"""

import os

from dotenv import load_dotenv

# Explicitly load the test environment variables before importing any app modules
dotenv_path = os.path.join(os.path.dirname(__file__), "..", ".env.test")
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path=dotenv_path, override=True)
else:
    print(f"Warning: .env.test file not found at {dotenv_path}")

# Import and re-export fixtures from modular files
from tests.fixtures.client import admin_token, api, auth_headers, client
from tests.fixtures.mocks import backend

# The imports above automatically register the fixtures with pytest
# so they will be available to all test modules without explicit imports
