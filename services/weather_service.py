"""
Service Météo
Relevés OpenWeatherMap utilisés pour le signal climatique du contexte
"""
from datetime import date, datetime, time, timezone
from typing import Optional

from pyowm import OWM
from pyowm.commons.exceptions import PyOWMError
from loguru import logger

from config.settings import OPENWEATHER_API_KEY
from models.context import WeatherReading
from models.errors import WeatherUnavailableError


FORECAST_HOUR = 12


class WeatherService:
    """
    Fournisseur climatique basé sur pyowm

    Les erreurs sont propagées: l'agrégateur de contexte les remplace par
    un climat par défaut.
    """

    def __init__(self, api_key: Optional[str] = None, owm: Optional[OWM] = None):
        """
        Args:
            api_key: Clé API OpenWeatherMap (défaut: OPENWEATHER_API_KEY)
            owm: Client déjà construit (tests, configuration spécifique)
        """
        self.api_key = api_key or OPENWEATHER_API_KEY
        self.client = owm
        if self.client is None and self.api_key:
            self.client = OWM(self.api_key)
        if self.client is None:
            logger.warning("OPENWEATHER_API_KEY non défini - service météo désactivé")
            self.mgr = None
        else:
            self.mgr = self.client.weather_manager()

    @property
    def enabled(self) -> bool:
        return self.mgr is not None

    def get_weather(self, lat: float, lon: float, day: date) -> WeatherReading:
        """
        Météo observée (jour courant) ou prévue à midi (jours suivants)

        Args:
            lat: Latitude
            lon: Longitude
            day: Jour visé

        Returns:
            WeatherReading

        Raises:
            WeatherUnavailableError: service désactivé ou erreur pyowm
        """
        if not self.enabled:
            raise WeatherUnavailableError("Service météo désactivé")

        try:
            if day <= date.today():
                weather = self.mgr.weather_at_coords(lat, lon).weather
            else:
                forecast = self.mgr.forecast_at_coords(lat, lon, '3h')
                target = datetime.combine(day, time(FORECAST_HOUR), tzinfo=timezone.utc)
                weather = forecast.get_weather_at(target)
        except PyOWMError as exc:
            raise WeatherUnavailableError(f"Erreur OpenWeatherMap: {exc}") from exc

        temperatures = weather.temperature('celsius')
        reading = WeatherReading(
            temperature=temperatures['temp'],
            humidity=weather.humidity,
            heat_index=temperatures.get('feels_like'),
            wind_speed=weather.wind().get('speed'),
            conditions=weather.status or "Clear"
        )
        logger.debug(f"Météo ({lat:.2f}, {lon:.2f}) le {day}: {reading.temperature:.1f}°C, {reading.conditions}")
        return reading
