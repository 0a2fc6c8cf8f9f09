"""
Test suite for Clinic Queue.

Contains unit and integration tests for slots, queue numbers, booking,
profiles and the staff roster.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
