# backend/lessonbook/routes/v1/__init__.py
"""
API v1 routes.

Routers carry no prefix of their own; ``main.py`` mounts them under
``/api/v1``.
"""
