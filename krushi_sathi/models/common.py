from pydantic import BaseModel
from typing import Any # Import Any for flexible dict content

class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""
    error: str
    code: str | None = None # Machine-readable, e.g. AI_SERVICE_ERROR
    details: Any | None = None # Field-level validation detail
    retryAfter: int | None = None # Seconds, only on 429

class HealthFeatures(BaseModel):
    aiConfigured: bool
    dbConfigured: bool
    rateLimitBackend: str # "memory" or "redis"
    offlineSupport: bool = True
    multiLanguage: bool = True
    voiceInput: bool = True
    imageAnalysis: bool = True
    weatherUpdates: bool = True

class HealthPerformance(BaseModel):
    responseTimeMs: float
    uptimeSeconds: float

class HealthResponse(BaseModel):
    """Liveness plus feature-flag diagnostics."""
    ok: bool
    timestamp: str # ISO timestamp
    environment: str
    features: HealthFeatures
    performance: HealthPerformance
    version: str
