"""
slotify - find common meeting slots from busy calendars.
"""

__version__ = "0.1.0"
