"""Calendar Tools - Event models and calendar store adapters

Components:
    models.py: CalendarEvent, Attendee, Interval
    providers/base.py: CalendarAdapter interface and AdapterError
    providers/google_calendar.py: Google Calendar v3 adapter
    providers/memory.py: In-memory store and dry-run overlay
"""
