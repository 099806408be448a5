"""
Tests for UserManager.

Covers email-based user creation and superuser flag enforcement.
"""

import pytest

from authentication.models import User


class TestUserManagerCreateUser:
    """Tests for UserManager.create_user() method."""

    def test_creates_user_with_email_and_password(self, db):
        """Should create a user that can authenticate with the password."""
        user = User.objects.create_user(
            email="owner@example.com",
            password="SecurePass123!",
        )

        assert user.pk is not None
        assert user.email == "owner@example.com"
        assert user.check_password("SecurePass123!") is True

    def test_normalizes_email_domain_to_lowercase(self, db):
        """Should lowercase the domain but keep the local part."""
        user = User.objects.create_user(email="Billing@ACME.TEST", password="x")

        assert user.email == "Billing@acme.test"

    def test_without_password_sets_unusable_password(self, db):
        """Should create a user with an unusable password."""
        user = User.objects.create_user(email="nopass@example.com")

        assert user.has_usable_password() is False

    def test_missing_email_raises_value_error(self, db):
        """Should refuse to create a user without an email."""
        with pytest.raises(ValueError, match="Email field must be set"):
            User.objects.create_user(email="", password="x")

    def test_defaults_to_regular_user(self, db):
        """Should not grant staff or superuser flags."""
        user = User.objects.create_user(email="regular@example.com", password="x")

        assert user.is_staff is False
        assert user.is_superuser is False

    def test_stores_business_name(self, db):
        """Should accept extra fields such as business_name."""
        user = User.objects.create_user(
            email="acme@example.com",
            password="x",
            business_name="Acme Ltd",
        )

        assert user.business_name == "Acme Ltd"
        assert user.get_full_name() == "Acme Ltd"


class TestUserManagerCreateSuperuser:
    """Tests for UserManager.create_superuser() method."""

    def test_creates_superuser_with_flags(self, db):
        """Should set is_staff and is_superuser."""
        admin = User.objects.create_superuser(
            email="admin@example.com",
            password="AdminPass123!",
        )

        assert admin.is_staff is True
        assert admin.is_superuser is True

    def test_rejects_superuser_without_staff_flag(self, db):
        """Should raise when is_staff is explicitly False."""
        with pytest.raises(ValueError, match="is_staff=True"):
            User.objects.create_superuser(
                email="admin2@example.com",
                password="x",
                is_staff=False,
            )

    def test_rejects_superuser_without_superuser_flag(self, db):
        """Should raise when is_superuser is explicitly False."""
        with pytest.raises(ValueError, match="is_superuser=True"):
            User.objects.create_superuser(
                email="admin3@example.com",
                password="x",
                is_superuser=False,
            )
