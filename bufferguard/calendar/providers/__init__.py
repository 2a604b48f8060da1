"""
Calendar Providers

Adapters implementing the CalendarAdapter interface.
"""

from bufferguard.calendar.providers.base import AdapterError, CalendarAdapter

__all__ = ["AdapterError", "CalendarAdapter"]
