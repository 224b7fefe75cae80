"""Shared fixtures for CloudFS Auth tests."""
import pytest

from cloudfs_auth.auth.settings_file import SynchronizedSettingsFile


@pytest.fixture
def settings_path(tmp_path):
    return str(tmp_path / "cloudfs" / "credentials.json")


@pytest.fixture
def settings(settings_path):
    """A settings file in a temporary directory."""
    return SynchronizedSettingsFile(settings_path)
