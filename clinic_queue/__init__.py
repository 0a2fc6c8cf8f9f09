"""
Clinic Queue

A FastAPI-based booking and queue service for a single clinic: patients
book doctor slots, staff advance appointments and assign queue numbers
on arrival.
"""

__version__ = "1.0.0"
