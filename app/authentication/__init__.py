"""
Authentication application.

Provides the email-based User model that owns invoices. Login flows
(JWT obtain/refresh) are served by rest_framework_simplejwt.

Usage:
    from authentication.models import User
"""
