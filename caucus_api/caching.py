"""
Cache-Control policies for public API responses.
"""

from __future__ import annotations

from fastapi import Response

EVENTS_MAX_AGE = 10
RESOURCES_MAX_AGE = 5 * 60
TECH_LIST_MAX_AGE = 10 * 60


def cache_headers(max_age: int) -> dict[str, str]:
    if max_age <= 0:
        return {
            "Cache-Control": "no-store, no-cache, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        }
    return {
        "Cache-Control": f"public, s-maxage={max_age}, stale-while-revalidate={max_age * 2}"
    }


def apply_cache_headers(response: Response, max_age: int) -> None:
    for key, value in cache_headers(max_age).items():
        response.headers[key] = value
