"""
Tests for authentication app.

This package contains test modules for:
- test_managers.py: UserManager tests

Usage:
    pytest authentication/tests/
"""
