"""
Helpers shared by the provider webhook normalizers.
"""

from typing import Union

import httpx

from api.src.errors import TransportError
from api.src.models.events import Ignored, NormalizedPayload

BRANCH_REF_PREFIX = "refs/heads/"
TAG_REF_PREFIX = "refs/tags/"

NormalizeResult = Union[NormalizedPayload, Ignored]

def extract_email(raw_author: str) -> str:
    """
    Extract the email from a "Name <email>" author string.
    Strings without angle brackets are returned unchanged.
    """
    if not raw_author or ">" not in raw_author:
        return raw_author or ""

    start = raw_author.rfind("<")
    end = raw_author.find(">", start + 1)
    if start == -1 or end == -1:
        return raw_author
    return raw_author[start + 1:end]

def strip_ref(ref: str, prefix: str = BRANCH_REF_PREFIX) -> str:
    """refs/heads/main -> main"""
    ref = ref or ""
    return ref[len(prefix):] if ref.startswith(prefix) else ref

async def fetch_json(client: httpx.AsyncClient, url: str, **kwargs):
    """GET a provider API url, raising TransportError outside of 2xx."""
    try:
        response = await client.get(url, **kwargs)
    except httpx.HTTPError as e:
        raise TransportError(f"Could not get commits, failed API request: {e}") from e

    if response.status_code < 200 or response.status_code >= 300:
        raise TransportError("Could not get commits, failed API request.")

    return response.json()
