#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# PYTHON_ARGCOMPLETE_OK

import argparse
import logging
import sys
import textwrap
from argparse import RawTextHelpFormatter

import argcomplete
import requests

from kcatalog import __version__

from .utils.catalog import VersionNotFoundError, query_catalog
from .utils.common import setup_logging
from .utils.config import LOG_LEVELS, config
from .utils.registries import RegistryError


def get_log_levels():
    """
    Get list of valid log levels for auto-completion.

    Returns:
        list: List of valid log level strings
    """
    return [level.lower() for level in LOG_LEVELS]


def complete_versions(prefix, parsed_args, **kwargs):
    """
    Complete the VERSION argument with the versions published in the selected repository.

    Registry failures end up as an argcomplete warning and no candidates.
    """
    repository = getattr(parsed_args, "repo", None) or config.catalog.repository
    try:
        versions = query_catalog(repository)
    except (requests.RequestException, RegistryError, ValueError) as e:
        argcomplete.warn(f"Could not list kernel versions of {repository}: {e}")
        return []
    return [version for version in versions if version.startswith(prefix)]


def parse_args(argv=None):
    """
    Parse command-line arguments for kcatalog.

    Parameters:
        argv (list): Arguments to parse, defaults to sys.argv[1:]

    Returns:
        argparse.Namespace: Parsed command-line arguments
    """
    parser = argparse.ArgumentParser(
        prog="kcatalog",
        description="List the available tags for kernel images published to a container registry.",
        epilog=textwrap.dedent(f"""
                            Examples:
                              # List all available versions
                              kcatalog

                              # List the tags available for version 6.6
                              kcatalog 6.6

                              # Retrieve the latest tags available for version bpf-next
                              kcatalog bpf-next | tail -n 2

                              # Retrieve the latest CI-generated images for version bpf-next
                              kcatalog bpf-next --repo {config.catalog.repository}-ci
                        """),
        formatter_class=RawTextHelpFormatter,
    )

    version_arg = parser.add_argument(
        "kernel_version",
        nargs="?",
        metavar="VERSION",
        help="Kernel version or branch (e.g. 6.6, bpf-next) whose tags should be listed",
    )
    version_arg.completer = complete_versions
    parser.add_argument(
        "--repo",
        default=config.catalog.repository,
        help=f"Specify the OCI repository to list the images from (default: {config.catalog.repository})",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=__version__,
        help="Display the current version",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=get_log_levels(),
        default=(
            config.logging.level.lower()
            if config.logging.level.lower() in get_log_levels()
            else "warning"
        ),
        help="Set the logging level",
    )
    argcomplete.autocomplete(parser)

    return parser.parse_args(argv)


def main(argv=None):
    """
    Main entry point for kcatalog.

    Lists the kernel versions of the repository, or the tags of one version
    when VERSION is given, one per line on stdout. Log output goes to stderr.

    Returns:
        int: Process exit code
    """
    args = parse_args(argv)
    setup_logging(log_level=args.log_level, log_file_path=config.logging.file)

    logging.debug(f"Using repository '{args.repo}'", extra={"indent": 0})

    try:
        entries = query_catalog(args.repo, args.kernel_version)
    except VersionNotFoundError as e:
        print(e, file=sys.stderr)
        return 1
    except (requests.RequestException, RegistryError, ValueError) as e:
        logging.error(f"Failed to list tags of '{args.repo}': {e}")
        return 1

    for entry in entries:
        print(entry)
    return 0


if __name__ == "__main__":
    sys.exit(main())
