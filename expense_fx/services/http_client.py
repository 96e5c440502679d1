from __future__ import annotations

"""Async HTTP JSON helper built on httpx.

Focus: GET JSON with a hard per-request timeout and limited retries. Callers
own the ``httpx.AsyncClient`` so connection pooling spans a whole search.
"""
import asyncio
from typing import Any, Dict, Mapping, Optional

import httpx


class HttpError(Exception):
    pass


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Optional[Mapping[str, str]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 5.0,
    retries: int = 0,
    backoff: float = 0.5,
) -> Dict[str, Any]:
    last_err: Optional[Exception] = None
    for attempt in range(retries + 1):
        try:
            resp = await client.get(url, params=params, headers=headers, timeout=timeout)
            if resp.status_code >= 400:
                raise HttpError(f"HTTP {resp.status_code} for {url}")
            data = resp.json()
            if not isinstance(data, dict):
                raise HttpError(f"Unexpected JSON payload from {url}")
            return data
        except (httpx.HTTPError, HttpError, ValueError) as e:  # ValueError for JSON decode
            last_err = e
            if attempt == retries:
                break
            await asyncio.sleep(backoff * (2**attempt))
    raise HttpError(f"Failed to fetch JSON from {url}: {last_err}")
