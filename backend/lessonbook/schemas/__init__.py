# backend/lessonbook/schemas/__init__.py
"""
Pydantic schemas for the lesson booking API.

Field names are snake_case in Python and camelCase on the wire.
"""
