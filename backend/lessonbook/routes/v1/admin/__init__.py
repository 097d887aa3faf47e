# backend/lessonbook/routes/v1/admin/__init__.py
"""
Administrator routes - API v1

Every router here is mounted under ``/api/v1/admin`` with the
``require_admin`` dependency.
"""
