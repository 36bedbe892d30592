"""
LessonHub - accounts, roles and access control for a course platform.

Admins manage accounts and roles, teachers upload course content,
students consume it.
"""

__version__ = "0.1.0"
