"""
Test suite for the Appointment Booking service.

Contains unit and integration tests for the application's functionality.
"""
import os

# Set environment for testing before any booking module reads settings
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite://")
