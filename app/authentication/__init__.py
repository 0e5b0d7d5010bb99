"""
Authentication application.

Key components:
    - User model: Email-based user shared by applicants and staff
    - JWT endpoints: token obtain/refresh (djangorestframework-simplejwt)

Usage:
    from authentication.models import User
"""
