from .base import WeatherAdapter
from .normalize import normalize_forecast
from .open_meteo import OpenMeteoWeatherAdapter

__all__ = ["WeatherAdapter", "OpenMeteoWeatherAdapter", "normalize_forecast"]
