from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ErrorViewModel(BaseModel):
    """Generic error page shown for unhandled faults outside development"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "request_id": "0f8fad5b-d9cb-469f-a165-70867728950e",
                "show_request_id": True
            }
        }
    )

    request_id: Optional[str] = Field(None, description="Correlation ID of the failed request")

    @computed_field
    @property
    def show_request_id(self) -> bool:
        return bool(self.request_id)


class ErrorResponse(BaseModel):
    """Body of the generic error page"""
    error: str = "INTERNAL_SERVER_ERROR"
    message: str = "An error occurred while processing your request."
    details: ErrorViewModel
