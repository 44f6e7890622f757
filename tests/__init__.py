"""
Test suite for the Clinic Booking Service.

Contains unit tests for slot generation, availability and booking, and
API tests for the HTTP endpoints.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
