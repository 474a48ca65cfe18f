#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import json
import logging
import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlencode, urljoin, urlparse, urlunparse

import requests

from ..config import config
from .auth import get_basic_auth

logger = logging.getLogger(__name__)

_LINK_NEXT = re.compile(r'<([^>]+)>;\s*rel="?next"?')
_CHALLENGE_PARAM = re.compile(r'(\w+)=(?:"([^"]*)"|([^,\s]*))')


class RegistryError(Exception):
    """The registry answered in a way the tag listing protocol does not allow."""


def update_url_with_page_size(url: str, page_size: int) -> str:
    """
    Ensure the URL includes or overrides the 'n' query parameter (page size).

    Other query parameters, notably the 'last' pagination marker, are kept.

    Parameters:
        url (str): The original URL
        page_size (int): Desired page size for the request

    Returns:
        str: Modified URL with 'n' parameter
    """
    parts = urlparse(url)
    query = parse_qs(parts.query)
    query["n"] = [str(page_size)]
    new_query = urlencode(query, doseq=True)
    return urlunparse(parts._replace(query=new_query))


def parse_auth_challenge(header: str) -> Tuple[str, Dict[str, str]]:
    """
    Split a WWW-Authenticate header into its scheme and parameters.

    Example:
        'Bearer realm="https://quay.io/v2/auth",service="quay.io"'
        -> ("bearer", {"realm": "https://quay.io/v2/auth", "service": "quay.io"})

    Parameters:
        header (str): Raw header value

    Returns:
        Tuple[str, Dict[str, str]]: Lowercased scheme and parameter mapping
    """
    header = (header or "").strip()
    if not header:
        return "", {}
    scheme, _, rest = header.partition(" ")
    params = {}
    for name, quoted, bare in _CHALLENGE_PARAM.findall(rest):
        params[name.lower()] = quoted if quoted else bare
    return scheme.lower(), params


def fetch_bearer_token(challenge: Dict[str, str], path: str, basic_auth: Optional[Tuple[str, str]], timeout: int) -> str:
    """
    Exchange a Bearer challenge for a pull token.

    Parameters:
        challenge (dict): Parameters of the Bearer challenge (realm, service, scope)
        path (str): Repository path inside the registry, used when the challenge has no scope
        basic_auth (tuple): Optional (username, password) for the token endpoint
        timeout (int): Request timeout in seconds

    Returns:
        str: The token

    Raises:
        RegistryError: When the challenge has no realm or no token is returned
        requests.RequestException: On any HTTP failure of the token endpoint
    """
    realm = challenge.get("realm")
    if not realm:
        raise RegistryError("Bearer challenge did not name a token realm")

    params = {"scope": challenge.get("scope") or f"repository:{path}:pull"}
    if challenge.get("service"):
        params["service"] = challenge["service"]

    logger.debug(f"Requesting token from {realm} ({'authenticated' if basic_auth else 'anonymous'})", extra={"indent": 4})
    response = requests.get(realm, params=params, auth=basic_auth, timeout=timeout)
    response.raise_for_status()
    body = response.json()
    token = body.get("token") or body.get("access_token")
    if not token:
        raise RegistryError(f"Token endpoint {realm} returned no token")
    return token


def authenticate(response, path: str, basic_auth: Optional[Tuple[str, str]], timeout: int):
    """
    Answer a 401 response's challenge.

    Returns:
        Tuple[dict, tuple]: Headers and requests ``auth`` value for the retried request

    Raises:
        requests.HTTPError: When the challenge cannot be answered
    """
    scheme, challenge = parse_auth_challenge(response.headers.get("WWW-Authenticate", ""))
    if scheme == "bearer":
        token = fetch_bearer_token(challenge, path, basic_auth, timeout)
        return {"Authorization": f"Bearer {token}"}, None
    if scheme == "basic" and basic_auth:
        return {}, basic_auth
    logger.debug(f"Cannot answer authentication challenge '{scheme or 'none'}'", extra={"indent": 4})
    response.raise_for_status()
    raise RegistryError(f"Registry rejected the request with status {response.status_code}")


def next_page_url(response, base_url: str, page_size: int) -> Optional[str]:
    """
    Resolve the rel="next" Link header of a tag page, if any.

    Returns:
        str or None: Absolute URL of the next page
    """
    match = _LINK_NEXT.search(response.headers.get("Link", ""))
    if not match:
        return None
    return update_url_with_page_size(urljoin(base_url, match.group(1)), page_size)


def list_tags(registry: str, path: str, reference: Optional[str] = None, page_size: Optional[int] = None,
              max_pages: Optional[int] = None, timeout: Optional[int] = None) -> List[str]:
    """
    List every tag of a repository using the OCI distribution tag listing API.

    This function performs the following steps:
    1. Requests /v2/<path>/tags/list anonymously.
    2. Answers a 401 challenge (Bearer token or Basic auth) once and repeats the request.
    3. Follows rel="next" Link headers until the last page or max_pages is reached.

    No retries are attempted; every failure is raised to the caller.

    Parameters:
        registry (str): Registry host, e.g. "quay.io"
        path (str): Repository path inside the registry, e.g. "lvh-images/kernel-images"
        reference (str): Full repository reference, used for credential lookup
        page_size (int): Tags requested per page (default from config)
        max_pages (int): Maximum number of pages to fetch (default from config)
        timeout (int): Per-request timeout in seconds (default from config)

    Returns:
        List[str]: Raw tag names in registry order

    Raises:
        requests.RequestException: Transport or HTTP failure
        RegistryError: Protocol violation by the registry
    """
    page_size = page_size or config.registry.pageSize
    max_pages = max_pages or config.registry.pageCrawlLimit
    timeout = timeout or config.registry.timeout

    base_url = f"https://{registry}"
    next_url = update_url_with_page_size(f"{base_url}/v2/{path}/tags/list", page_size)
    basic_auth = get_basic_auth(registry, reference or f"{registry}/{path}")
    headers = {}
    auth = None
    authenticated = False
    tags: List[str] = []

    for _ in range(max_pages):
        logger.debug(f"Making request to: {next_url}", extra={"indent": 2})
        response = requests.get(next_url, headers=headers, auth=auth, timeout=timeout)

        if response.status_code == 401 and not authenticated:
            headers, auth = authenticate(response, path, basic_auth, timeout)
            authenticated = True
            response = requests.get(next_url, headers=headers, auth=auth, timeout=timeout)

        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise RegistryError(f"Unexpected tag list payload from {next_url}: {json.dumps(data)[:200]}")
        tags.extend(data.get("tags") or [])

        next_url = next_page_url(response, base_url, page_size)
        if not next_url:
            break
    else:
        logger.warning(
            f"Stopped listing tags of {registry}/{path} after {max_pages} pages, the result may be incomplete",
            extra={"indent": 2},
        )

    logger.debug(f"Retrieved {len(tags)} tags from {registry}/{path}", extra={"indent": 2})
    return tags
