"""
Pytest configuration and common fixtures for kcatalog tests.

This module provides shared fixtures and configuration for all test modules.
"""

import os
from unittest.mock import Mock

import pytest
import requests

# Keep a developer's own configuration file out of the test run
os.environ["KCATALOG_CONFIG"] = os.path.join(os.path.dirname(__file__), "kcatalog-test-does-not-exist.cfg")


@pytest.fixture
def raw_tags():
    """Tag list as published by the kernel image repository, noise included."""
    return [
        "6.6-20240215.082140",
        "bpf-next-20240216.013301",
        "6.6-latest-20240101.000000",
        "5.15-20240215.081530",
        "6.12-main",
        "6.6-20240110.101010",
        "latest",
        "sha256-3c1d2f.sig",
        "bpf-next-main",
        "6.6-main",
    ]


@pytest.fixture
def make_response():
    """Factory for fake ``requests`` responses."""

    def _make_response(status_code=200, json_data=None, headers=None):
        response = Mock()
        response.status_code = status_code
        response.headers = headers or {}
        response.json.return_value = json_data
        if status_code >= 400:
            response.raise_for_status.side_effect = requests.HTTPError(
                f"{status_code} Client Error", response=response
            )
        else:
            response.raise_for_status.return_value = None
        return response

    return _make_response
