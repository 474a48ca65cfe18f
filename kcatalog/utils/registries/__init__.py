#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging
from typing import List, Tuple

from . import oci
from .oci import RegistryError

logger = logging.getLogger(__name__)

DOCKER_HUB = "docker.io"
DOCKER_HUB_REGISTRY = "registry-1.docker.io"

__all__ = ["RegistryError", "list_tags", "parse_repository"]


def parse_repository(repository: str) -> Tuple[str, str]:
    """
    Split a repository reference into registry host and repository path.

    The first path component names a registry when it contains a "." or ":"
    or is "localhost". Otherwise the reference points at Docker Hub, where
    single-component names live under "library/".

    Examples:
        "quay.io/lvh-images/kernel-images" -> ("quay.io", "lvh-images/kernel-images")
        "localhost:5000/kernels"          -> ("localhost:5000", "kernels")
        "ubuntu"                          -> ("registry-1.docker.io", "library/ubuntu")

    Parameters:
        repository (str): Repository reference without tag or digest

    Returns:
        Tuple[str, str]: (registry host, repository path)

    Raises:
        ValueError: If the reference is empty or carries a tag or digest
    """
    repository = (repository or "").strip().strip("/")
    if not repository:
        raise ValueError("Repository reference must not be empty")
    if "@" in repository:
        raise ValueError(f"Repository reference '{repository}' must not contain a digest")

    head, sep, rest = repository.partition("/")
    if sep and ("." in head or ":" in head or head == "localhost"):
        registry, path = head.lower(), rest
    else:
        registry, path = DOCKER_HUB, repository

    if ":" in path:
        raise ValueError(f"Repository reference '{repository}' must not contain a tag")
    if not path:
        raise ValueError(f"Repository reference '{repository}' has no repository path")

    if registry in (DOCKER_HUB, "index.docker.io"):
        registry = DOCKER_HUB_REGISTRY
        if "/" not in path:
            path = f"library/{path}"

    return registry, path


def list_tags(repository: str) -> List[str]:
    """
    Retrieve the complete, unfiltered tag list of a repository.

    Parameters:
        repository (str): Repository reference, e.g. "quay.io/lvh-images/kernel-images"

    Returns:
        List[str]: Raw tag names

    Raises:
        ValueError: Invalid repository reference
        requests.RequestException: Transport or HTTP failure, unchanged
        RegistryError: Protocol violation by the registry
    """
    registry, path = parse_repository(repository)
    logger.debug(f"Retrieving tags of '{path}' from '{registry}'", extra={"indent": 2})
    tags = oci.list_tags(registry, path, reference=repository)
    logger.info(f"A total of {len(tags)} tags have been retrieved from '{repository}'")
    return tags
