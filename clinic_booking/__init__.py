"""
Clinic Booking Service

A FastAPI-based service for booking clinic appointments: patients browse
doctors and book free 30 minute slots, doctors follow their schedule.
"""

__version__ = "1.0.0"
