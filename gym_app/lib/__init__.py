"""
Library modules for the gym tracking core.

Usage:
    from gym_app.lib.dependencies import get_services

    services = get_services()
    services.workouts.replace_workout_session(person_id, "2024-01-15", entries)
"""
