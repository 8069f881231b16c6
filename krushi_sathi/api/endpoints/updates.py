from fastapi import APIRouter, Depends, HTTPException, Query
from krushi_sathi.models.updates import MarketPrice, SchemeStatus, UpdatesResponse, WeatherInfo
from krushi_sathi.models.common import ErrorResponse
from krushi_sathi.core.config import settings
from typing import AsyncIterator
import httpx
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

# Static until a market/scheme feed is wired in
MARKET_PRICES = [
    MarketPrice(crop="Tomato", pricePerKgInr=28),
    MarketPrice(crop="Onion", pricePerKgInr=36),
]
SCHEMES = [
    SchemeStatus(title="PM-Kisan", status="Open"),
    SchemeStatus(title="Pradhan Mantri Fasal Bima Yojana", status="Due 30 Sep"),
]


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=settings.WEATHER_TIMEOUT_SECONDS) as client:
        yield client


def ms_to_kph(speed_ms: float) -> int:
    return round(speed_ms * 3.6)


async def fetch_weather(client: httpx.AsyncClient, lat: float, lon: float) -> WeatherInfo:
    params = {
        "latitude": lat,
        "longitude": lon,
        "current": "temperature_2m,wind_speed_10m",
        "wind_speed_unit": "ms",
        "timezone": "auto",
    }
    resp = await client.get(settings.WEATHER_API_URL, params=params)
    resp.raise_for_status()
    payload = resp.json()
    if not isinstance(payload, dict):
        raise ValueError(f"Unexpected weather payload: {type(payload).__name__}")
    current = payload.get("current")
    if not isinstance(current, dict):
        current = {}
    temp = current.get("temperature_2m")
    wind = current.get("wind_speed_10m")
    return WeatherInfo(
        temperatureC=temp if isinstance(temp, (int, float)) else None,
        windKph=ms_to_kph(wind) if isinstance(wind, (int, float)) else None,
        description="Live weather from Open-Meteo",
    )


@router.get("/updates", response_model=UpdatesResponse, responses={500: {"model": ErrorResponse}})
async def get_updates(
    lat: float = Query(settings.DEFAULT_LATITUDE, ge=-90, le=90),
    lon: float = Query(settings.DEFAULT_LONGITUDE, ge=-180, le=180),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Live weather plus static market prices and scheme status."""
    logger.info(f"Fetching updates for lat={lat}, lon={lon}")
    try:
        weather = await fetch_weather(client, lat, lon)
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Weather fetch failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail={"error": "Failed to fetch updates", "detail": str(e)})
    return UpdatesResponse(weather=weather, market=MARKET_PRICES, schemes=SCHEMES)
