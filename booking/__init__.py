"""
Appointment Booking

A FastAPI-based service where authenticated users book personal calendar
appointments, either timed or all-day, with all-day exclusivity per date.
"""

__version__ = "1.0.0"
