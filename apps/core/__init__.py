"""
Core app - Shared abstractions and utilities.

This app provides platform-agnostic pieces used by every domain app:
- Task execution (TaskService) with local and Celery backends
- Field-level validation errors
- Health check endpoints
"""
