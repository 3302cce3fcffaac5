from abc import ABC, abstractmethod

from ipweather.schemas.weather import WeatherSnapshot


class AbstractWeatherClient(ABC):
	"""Interface for weather providers returning current conditions and forecast."""

	@abstractmethod
	async def fetch_by_coords(self, latitude: float, longitude: float) -> WeatherSnapshot:
		"""Fetch conditions for a coordinate pair.

		Returns:
			WeatherSnapshot: Provider data, not yet normalized.

		Raises:
			UpstreamAppError: If the provider is unreachable, answers non-2xx,
				or the response cannot be decoded.
		"""
		...

	@abstractmethod
	async def fetch_by_identity(self, identity: str) -> WeatherSnapshot:
		"""Fetch conditions letting the provider geolocate identity itself.

		Raises:
			UpstreamAppError: Same conditions as fetch_by_coords.
		"""
		...
