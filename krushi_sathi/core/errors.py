"""Service errors carrying an HTTP status and a machine-readable code.

Raised from endpoint and service code and rendered as ``{error, code}`` by the
handler registered in ``krushi_sathi.main``.
"""


class AdvisoryServiceError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class AIServiceError(AdvisoryServiceError):
    """Provider timed out, failed in transport, or returned an error."""
    status_code = 503
    code = "AI_SERVICE_ERROR"
    default_message = "AI advisory service is temporarily unavailable. Please try again in a few minutes."


class AIConfigError(AdvisoryServiceError):
    """No usable credential for the provider."""
    status_code = 503
    code = "AI_CONFIG_ERROR"
    default_message = "AI advisory service is not configured."


class AIParseError(AdvisoryServiceError):
    """Model output could not be coerced into an advisory."""
    status_code = 503
    code = "AI_PARSE_ERROR"
    default_message = "AI returned an unreadable answer. Please try again."


class PersistenceError(AdvisoryServiceError):
    status_code = 500
    code = "PERSISTENCE_ERROR"
    default_message = "Failed to access saved advisories"


class DatabaseNotConfiguredError(AdvisoryServiceError):
    status_code = 503
    code = "DB_CONFIG_ERROR"
    default_message = "Database not configured"
