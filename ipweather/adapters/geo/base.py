from abc import ABC, abstractmethod

from ipweather.schemas.weather import ResolvedLocation


class AbstractIdentityGeolocator(ABC):
	"""Interface for providers that locate a requester from its IP address."""

	@abstractmethod
	async def lookup(self, identity: str) -> ResolvedLocation:
		"""Locate identity.

		Args:
			identity: Requester identity, normally an IP address.

		Returns:
			ResolvedLocation: Country, city and coordinates.

		Raises:
			LookupFailureError: If the provider is unreachable, the response
				cannot be decoded, or it carries no usable coordinates.
		"""
		...


class AbstractPlaceGeocoder(ABC):
	"""Interface for providers that geocode a city/country pair."""

	@abstractmethod
	async def geocode(self, city: str, country: str) -> list[tuple[float, float]]:
		"""Return candidate (latitude, longitude) pairs, best match first.

		Raises:
			LookupFailureError: If the provider is unreachable or the response
				cannot be decoded. An empty list is returned as-is.
		"""
		...
