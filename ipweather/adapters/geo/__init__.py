"""Geolocation adapters: IP address to location, place name to coordinates."""

from ipweather.adapters.geo.base import AbstractIdentityGeolocator, AbstractPlaceGeocoder
from ipweather.adapters.geo.google_maps import GoogleGeocoder
from ipweather.adapters.geo.ipinfo import IpInfoGeolocator

__all__ = [
    "AbstractIdentityGeolocator",
    "AbstractPlaceGeocoder",
    "GoogleGeocoder",
    "IpInfoGeolocator",
]
