"""Shared HTTP and avatar helpers for the resolution chains."""

import logging
import re
from typing import Awaitable, Callable, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

_API_KEY_PATTERN = re.compile(r"api_key=[^&\s]+", re.IGNORECASE)

MAX_REDIRECTS = 3

UrlCheck = Callable[[str], Awaitable[bool]]


def sanitize_error(error: BaseException | str) -> str:
    """Strip api_key query params from error messages before logging."""
    return _API_KEY_PATTERN.sub("api_key=***", str(error))


async def follow_checked_redirects(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    check_url: Optional[UrlCheck],
    timeout: float,
    max_redirects: int = MAX_REDIRECTS,
) -> Optional[httpx.Response]:
    """
    Send a request, following redirects by hand so every hop is re-checked.

    With no check_url, redirects are not followed and the 3xx response is
    returned as-is.

    Returns:
        The final response, or None when a redirect target fails check_url
        or more than max_redirects hops are needed

    Raises:
        httpx.HTTPError: On transport errors
    """
    for _ in range(max_redirects + 1):
        response = await client.request(method, url, timeout=timeout, follow_redirects=False)
        if not response.is_redirect or check_url is None:
            return response

        url = str(response.url.join(response.headers["location"]))
        if not await check_url(url):
            logger.warning(f"Refused redirect to unsafe URL: {url}")
            return None

    logger.debug(f"Too many redirects for {method} {url}")
    return None


async def is_image_reachable(
    client: httpx.AsyncClient,
    url: str,
    timeout: float = 4.0,
    allow_empty_content_type: bool = False,
    check_url: Optional[UrlCheck] = None,
) -> bool:
    """
    HEAD a URL and check that it serves an image.

    Args:
        client: Shared AsyncClient
        url: URL to check
        timeout: Request timeout in seconds
        allow_empty_content_type: Accept a 2xx with no content-type
            (some logo CDNs omit it)
        check_url: Safety check re-run on every redirect target. Without
            it httpx follows redirects itself, which is only for fixed
            logo endpoints we build ourselves.

    Returns:
        True on 2xx with an image/* content-type
    """
    try:
        if check_url is None:
            response = await client.head(url, timeout=timeout, follow_redirects=True)
        else:
            response = await follow_checked_redirects(client, "HEAD", url, check_url, timeout)
    except httpx.HTTPError as e:
        logger.debug(f"HEAD {url} failed: {sanitize_error(e)}")
        return False

    if response is None or not response.is_success:
        return False

    content_type = response.headers.get("content-type", "")
    if not content_type:
        return allow_empty_content_type
    return content_type.startswith("image/")


def initials(name: str) -> str:
    """
    Two-letter initials for avatar services.

    "Acme Corp" -> "AC", "stripe" -> "ST"
    """
    words = name.split()
    if len(words) >= 2:
        return (words[0][0] + words[1][0]).upper()
    return name.strip()[:2].upper()


def ui_avatar_url(name: str, background: str = "1a1a2e", size: int = 128, **extra: str) -> str:
    """Build a deterministic letter-avatar URL (always resolvable)."""
    params = f"name={quote(name)}&background={background}&color=fff&size={size}"
    for key, value in extra.items():
        params += f"&{key}={value}"
    return f"https://ui-avatars.com/api/?{params}"
