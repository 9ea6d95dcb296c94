"""Gateway error types, mapped to HTTP responses at the request boundary."""

from fastapi import status


class GatewayError(Exception):
    """Base error carrying the HTTP status it should surface as."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "server_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, dict[str, str | int]]:
        """Render as an OpenAI-style error envelope."""
        return {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.status_code,
            }
        }


class InvalidRequestError(GatewayError):
    """Malformed or schema-violating request body."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "invalid_request_error"


class ModelNotFoundError(GatewayError):
    """No catalog model satisfies the resolution policy."""

    status_code = status.HTTP_404_NOT_FOUND
    error_type = "model_not_found"


class ModelLoadError(GatewayError):
    """The inference engine refused or failed to load a model."""

    def __init__(self, model_name: str) -> None:
        super().__init__(f"Failed to load model {model_name}")
        self.model_name = model_name


class GenerationError(GatewayError):
    """The inference engine failed while generating."""

    def __init__(self, model_name: str, reason: str) -> None:
        super().__init__(f"Generation failed for model {model_name}: {reason}")
        self.model_name = model_name


class EngineUnavailableError(GatewayError):
    """No inference engine is configured."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_type = "engine_unavailable"
