"""
DevCamper Backend: Abstract Geocoder Interface
================================================

What:  Contract for turning a free-form address or postal code into
       coordinates plus address components.
How:   Concrete implementations inherit from GeocoderService and implement
       geocode() and health_check().
Who:   BootcampService (create / address change) and the radius search route.

Implementations:
    - MapQuestGeocoder: MapQuest Geocoding API over httpx (default)
    - Tests pass an AsyncMock(spec=GeocoderService) or a MapQuestGeocoder
      wired to an httpx.MockTransport.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class GeocodedLocation(BaseModel):
    """Result of one geocoding lookup. Only latitude/longitude are guaranteed."""

    latitude: float
    longitude: float
    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None


class GeocoderService(ABC):
    """
    Abstract interface for the geocoding collaborator.

    Contract:
        - geocode() returns the best match for `location`
        - Implementations handle their own retries and circuit breaking
        - Provider errors are wrapped in GeocoderError
    """

    @abstractmethod
    async def geocode(self, location: str) -> GeocodedLocation:
        """
        Resolve an address or postal code.

        Args:
            location: Free-form address ("233 Bay State Rd Boston MA 02215")
                      or a postal code ("02118").

        Returns:
            GeocodedLocation for the provider's best match.

        Raises:
            GeocoderError: Provider failed after all retries, or found nothing.
            CircuitBreakerOpenError: Too many recent failures; call rejected.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True if the provider is currently usable (used by /health)."""
        ...
