from pydantic import BaseModel
from typing import List

class WeatherInfo(BaseModel):
    temperatureC: float | None = None
    windKph: int | None = None
    description: str

class MarketPrice(BaseModel):
    crop: str
    pricePerKgInr: int

class SchemeStatus(BaseModel):
    title: str
    status: str

class UpdatesResponse(BaseModel):
    weather: WeatherInfo
    market: List[MarketPrice]
    schemes: List[SchemeStatus]
