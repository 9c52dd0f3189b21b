"""
DevCamper Backend: MapQuest Geocoder Implementation
=====================================================

What:  Concrete geocoder calling the MapQuest Geocoding API with httpx.
How:   GET {geocoder_url}?key=...&location=..., first location of the first
       result is the match. Calls are wrapped in tenacity retries and an
       in-process circuit breaker.
Who:   Built once in the application lifespan and kept on app.state;
       BootcampService and the radius search route receive it through the
       `get_geocoder` dependency.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transport errors
       and 5xx responses (4xx is a caller problem and is not retried)
    2. Circuit breaker to fail fast while the provider is down
    3. Per-request timeout from settings.geocoder_timeout

Response shape consumed (MapQuest v1):
    {"results": [{"locations": [{
        "latLng": {"lat": 42.35, "lng": -71.1},
        "street": "233 Bay State Rd", "adminArea5": "Boston",
        "adminArea3": "MA", "postalCode": "02215", "adminArea1": "US"
    }]}]}
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from devcamper.config import settings
from devcamper.exceptions import CircuitBreakerOpenError, GeocoderError
from devcamper.services.geocoder_base import GeocodedLocation, GeocoderService

logger = logging.getLogger(__name__)


class _RetryableResponse(Exception):
    """Internal: a 5xx answer that tenacity should retry."""

    def __init__(self, status_code: int):
        super().__init__(f"Geocoder answered HTTP {status_code}")
        self.status_code = status_code


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding the geocoder.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN

        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN

        HALF_OPEN (testing recovery)
            → Allow the next request through
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Not thread-safe; uvicorn async workers share one process per worker.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True if the request may proceed.

        Raises:
            CircuitBreakerOpenError if OPEN and the recovery timeout hasn't elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info("Circuit breaker transitioning to HALF_OPEN after %.1fs", elapsed)
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# MapQuest Geocoder
# ══════════════════════════════════════════════════════════════════════════

def parse_mapquest_response(payload: Dict[str, Any]) -> Optional[GeocodedLocation]:
    """Best match from a MapQuest payload, or None when nothing usable came back."""
    try:
        location = payload["results"][0]["locations"][0]
        lat_lng = location["latLng"]
        latitude, longitude = float(lat_lng["lat"]), float(lat_lng["lng"])
    except (KeyError, IndexError, TypeError, ValueError):
        return None

    street = location.get("street") or None
    city = location.get("adminArea5") or None
    state = location.get("adminArea3") or None
    zipcode = location.get("postalCode") or None
    country = location.get("adminArea1") or None

    parts = [p for p in (street, city, state, zipcode, country) if p]
    return GeocodedLocation(
        latitude=latitude,
        longitude=longitude,
        formatted_address=", ".join(parts) or None,
        street=street,
        city=city,
        state=state,
        zipcode=zipcode,
        country=country,
    )


class MapQuestGeocoder(GeocoderService):
    """
    MapQuest Geocoding API client.

    Error Handling Chain:
        HTTP call fails → tenacity retries (settings.retry_max_attempts)
        → All retries fail → record circuit breaker failure → GeocoderError
        → Threshold reached → future calls rejected instantly (CircuitBreakerOpenError)
        → Recovery timeout → one test call allowed (HALF_OPEN)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            api_key:  MapQuest key (settings.geocoder_api_key by default)
            base_url: Endpoint URL (settings.geocoder_url by default)
            client:   Pre-built httpx client (tests pass one with a MockTransport)
        """
        self.api_key = api_key if api_key is not None else settings.geocoder_api_key
        self.base_url = base_url or settings.geocoder_url
        self.client = client or httpx.AsyncClient(timeout=settings.geocoder_timeout)
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "MapQuestGeocoder initialized, circuit_breaker(threshold=%d, recovery=%ds)",
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    async def geocode(self, location: str) -> GeocodedLocation:
        """
        Flow:
            1. Check circuit breaker → may raise CircuitBreakerOpenError
            2. Call MapQuest with retry logic
            3. Record success/failure in circuit breaker
            4. Parse the first match (GeocoderError if there is none)
        """
        request_id = str(uuid.uuid4())[:8]

        self.circuit_breaker.can_execute()

        logger.info("[%s] Geocoding location %r", request_id, location)

        try:
            payload = await self._call_with_retry(location, request_id)
        except (httpx.HTTPError, _RetryableResponse) as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Geocoder request failed: %s", request_id, str(e))
            raise GeocoderError(
                message="Geocoding service failed. Please try again later.",
                context={"request_id": request_id, "error_type": type(e).__name__},
            )
        except ValueError as e:
            # Body was not JSON
            self.circuit_breaker.record_failure()
            logger.error("[%s] Geocoder returned an unreadable body: %s", request_id, str(e))
            raise GeocoderError(
                message="Geocoding service returned an invalid response.",
                context={"request_id": request_id},
            )

        self.circuit_breaker.record_success()

        result = parse_mapquest_response(payload)
        if result is None:
            raise GeocoderError(
                message=f"Could not geocode location {location}",
                context={"request_id": request_id, "location": location},
            )
        return result

    @retry(
        retry=retry_if_exception_type((httpx.TransportError, _RetryableResponse)),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=settings.retry_min_wait,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _call_with_retry(self, location: str, request_id: str) -> Dict[str, Any]:
        """
        The HTTP call alone carries the retry decorator; the circuit breaker
        check in geocode() runs once per lookup.
        """
        start_time = time.time()
        response = await self.client.get(
            self.base_url,
            params={"key": self.api_key, "location": location},
        )
        duration_ms = (time.time() - start_time) * 1000

        if response.status_code >= 500:
            logger.warning(
                "[%s] Geocoder answered %d after %.0fms",
                request_id,
                response.status_code,
                duration_ms,
            )
            raise _RetryableResponse(response.status_code)

        response.raise_for_status()
        logger.info("[%s] Geocoder answered in %.0fms", request_id, duration_ms)
        return response.json()

    async def health_check(self) -> bool:
        """
        Reports the circuit state only; probing the provider would spend
        API quota on every health poll.
        """
        return self.circuit_breaker.state != CircuitBreaker.OPEN

    async def aclose(self) -> None:
        await self.client.aclose()
