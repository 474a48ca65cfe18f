#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import json
import logging
import os
from typing import Dict, Optional, Tuple
from urllib.parse import urlparse

from ..config import config

logger = logging.getLogger(__name__)

DOCKER_HUB = "docker.io"
DOCKER_HUB_ALIASES = {"docker.io", "index.docker.io", "registry.hub.docker.com", "registry-1.docker.io"}


class RegistryAuthManager:
    """
    Manages authentication credentials for container registries and repositories.

    Supports two levels:
    - Registry-level: credentials for a whole registry host (e.g. "quay.io")
    - Repository-level: credentials for one repository (e.g. "quay.io/lvh-images/kernel-images-ci")

    Credentials file format:
    {
        "registries": {
            "quay.io": {
                "username": "default_user",
                "password": "default_password"
            }
        },
        "repositories": {
            "quay.io/lvh-images/kernel-images-ci": {
                "username": "robot",
                "token": "specific_token"
            }
        }
    }
    """

    def __init__(self, credentials_file: Optional[str] = None, enabled: Optional[bool] = None):
        self._credentials_file = credentials_file
        self._enabled = enabled
        self._registry_credentials = {}
        self._repository_credentials = {}
        self.load_credentials()

    @property
    def enabled(self) -> bool:
        if self._enabled is not None:
            return self._enabled
        return bool(config.registryAuth.enabled)

    @property
    def credentials_file(self) -> str:
        return os.path.expanduser(self._credentials_file or config.registryAuth.credentialsFile)

    def load_credentials(self):
        """
        Load credentials from the configured JSON file.

        A missing or malformed file leaves the manager without credentials,
        which means anonymous access.
        """
        self._registry_credentials = {}
        self._repository_credentials = {}
        if not self.enabled:
            logger.debug("Registry authentication is disabled", extra={"indent": 2})
            return

        credentials_file = self.credentials_file
        if not os.path.exists(credentials_file):
            logger.warning(f"Credentials file not found: {credentials_file}", extra={"indent": 2})
            return

        try:
            with open(credentials_file, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.error(f"Failed to load credentials from {credentials_file}: {e}", extra={"indent": 2})
            return

        if not isinstance(data, dict):
            logger.error(f"Invalid credentials file format: expected dict, got {type(data)}", extra={"indent": 2})
            return

        self._registry_credentials = {
            self.normalize_registry(key): value
            for key, value in (data.get("registries", {}) or {}).items()
        }
        self._repository_credentials = {
            self.normalize_repository(key): value
            for key, value in (data.get("repositories", {}) or {}).items()
        }
        logger.debug(
            f"Loaded {len(self._registry_credentials)} registry and {len(self._repository_credentials)} repository credentials",
            extra={"indent": 2},
        )

    @staticmethod
    def normalize_registry(registry: str) -> str:
        """
        Reduce a registry URL or host to its lowercased host[:port].

        Every Docker Hub host name maps to "docker.io".

        Parameters:
            registry (str): e.g. "https://quay.io/v2/", "quay.io"

        Returns:
            str: Normalized host, e.g. "quay.io"
        """
        registry = registry.strip()
        if "://" not in registry:
            registry = "https://" + registry
        host = urlparse(registry).netloc.lower()
        return DOCKER_HUB if host in DOCKER_HUB_ALIASES else host

    @classmethod
    def normalize_repository(cls, repository: str) -> str:
        """
        Reduce a repository reference to "host/path".

        References without a registry host point at Docker Hub, where
        single-component names live under "library/".

        Examples:
            "cilium/kernels"                       -> "docker.io/cilium/kernels"
            "registry-1.docker.io/library/ubuntu"  -> "docker.io/library/ubuntu"
            "https://Quay.io/lvh-images/kernel-images" -> "quay.io/lvh-images/kernel-images"
        """
        repository = repository.strip()
        if "://" in repository:
            repository = repository.split("://", 1)[1]
        repository = repository.strip("/")

        head, sep, rest = repository.partition("/")
        if sep and ("." in head or ":" in head or head == "localhost"):
            host, path = cls.normalize_registry(head), rest
        else:
            host, path = DOCKER_HUB, repository

        if host == DOCKER_HUB and "/" not in path:
            path = f"library/{path}"
        return f"{host}/{path}"

    def get_credentials(self, registry: str, repository: Optional[str] = None) -> Optional[Dict[str, str]]:
        """
        Get credentials for a registry and optionally a specific repository.

        Priority order:
        1. Repository-specific credentials (if repository provided)
        2. Registry-level credentials
        3. None (anonymous access)

        Parameters:
            registry (str): Registry host or URL
            repository (str, optional): Full repository reference

        Returns:
            dict or None: Credentials dictionary or None if not found
        """
        if not self.enabled:
            return None

        if repository:
            key = self.normalize_repository(repository)
            if key in self._repository_credentials:
                logger.debug(f"Found repository-specific credentials for: {key}", extra={"indent": 2})
                return self._repository_credentials[key]

        host = self.normalize_registry(registry)
        if host in self._registry_credentials:
            logger.debug(f"Using registry-level credentials for: {host}", extra={"indent": 2})
            return self._registry_credentials[host]

        logger.debug(f"No credentials found for registry: {host}, repository: {repository}", extra={"indent": 2})
        return None

    def get_basic_auth(self, registry: str, repository: Optional[str] = None) -> Optional[Tuple[str, str]]:
        """
        Get a (username, secret) pair suitable for HTTP basic auth.

        A "token" entry stands in for the password.

        Returns:
            tuple or None: (username, password) or None if incomplete
        """
        credentials = self.get_credentials(registry, repository)
        if not credentials:
            return None

        username = credentials.get("username")
        password = credentials.get("password") or credentials.get("token")
        if not username or not password:
            logger.warning(
                f"Incomplete credentials for {repository or registry} - username: {bool(username)}, password: {bool(password)}",
                extra={"indent": 2},
            )
            return None
        return username, password


_auth_manager = None


def get_auth_manager() -> RegistryAuthManager:
    """Lazily build the shared manager so config is read on first use."""
    global _auth_manager
    if _auth_manager is None:
        _auth_manager = RegistryAuthManager()
    return _auth_manager


def get_basic_auth(registry: str, repository: Optional[str] = None) -> Optional[Tuple[str, str]]:
    """
    Convenience function to get basic auth for a registry and optionally a repository.

    Parameters:
        registry (str): Registry host or URL
        repository (str, optional): Full repository reference

    Returns:
        tuple or None: (username, password) or None if not configured
    """
    return get_auth_manager().get_basic_auth(registry, repository)
