"""
Storage core for the gym tracking application.

People, exercises, workout sessions and routine templates persisted in a
single embedded SQLite store.
"""

__version__ = "1.0.0"
