"""HTTP client for the seat selection endpoints.

Queries retry transient failures (5xx, transport errors) twice with an
exponential delay; mutations retry once. 4xx answers are final.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)

QUERY_RETRIES = 2
MUTATION_RETRIES = 1
BASE_DELAY = 0.3
MAX_DELAY = 5.0


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


def query_delay(attempt: int) -> float:
    return min(BASE_DELAY * 2 ** attempt, MAX_DELAY)


def mutation_delay(attempt: int) -> float:
    return BASE_DELAY


def _error_from(response: httpx.Response) -> ApiError:
    message = response.reason_phrase or "Request failed"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("detail") or body.get("error") or message
    return ApiError(response.status_code, str(message))


class SeatSelectionClient:
    def __init__(self, http: httpx.Client, access_token: str | None = None, sleep: Callable[[float], None] = time.sleep):
        self.http = http
        self.access_token = access_token
        self._sleep = sleep

    def _headers(self) -> dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    def _request(self, method: str, url: str, retries: int, delay: Callable[[int], float], **kwargs) -> Any:
        attempt = 0
        while True:
            try:
                response = self.http.request(method, url, headers=self._headers(), **kwargs)
            except httpx.TransportError as e:
                if attempt >= retries:
                    raise ApiError(0, str(e)) from e
                logger.warning("%s %s failed (%s), retrying", method, url, e)
            else:
                if response.status_code < 400:
                    return response.json()
                error = _error_from(response)
                if error.is_client_error or attempt >= retries:
                    raise error
                logger.warning("%s %s returned %s, retrying", method, url, response.status_code)
            self._sleep(delay(attempt))
            attempt += 1

    def fetch(self, token: str) -> dict:
        return self._request("GET", f"/api/seat-selection/{token}", QUERY_RETRIES, query_delay)

    def submit(self, token: str, payload: dict) -> dict:
        return self._request("POST", f"/api/seat-selection/{token}", MUTATION_RETRIES, mutation_delay, json=payload)

    def update_client_seats(self, client_id: int, payload: dict) -> dict:
        return self._request("PUT", f"/api/clients/{client_id}/seats", MUTATION_RETRIES, mutation_delay, json=payload)
