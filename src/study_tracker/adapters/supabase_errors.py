"""Translate Supabase transport failures into store errors."""

from collections.abc import Iterator
from contextlib import contextmanager

import httpx
from postgrest.exceptions import APIError

from study_tracker.domain.errors import StoreUnavailable


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Raise StoreUnavailable for PostgREST or HTTP failures inside the block."""
    try:
        yield
    except (APIError, httpx.HTTPError) as exc:
        raise StoreUnavailable(f"Supabase {action} failed: {exc}") from exc
