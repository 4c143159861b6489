"""
Common schemas shared across multiple endpoints.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model for records exchanged with the backend in camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class MessageResponse(BaseModel):
    """Standard message response for API operations."""

    message: str = Field(..., description="Response message")
    success: bool = Field(..., description="Operation success status")


class ToastType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    LOADING = "loading"


class ToastPayload(BaseModel):
    """Notification the front end shows once after an action."""

    id: Optional[str] = Field(None, description="Toast identifier")
    type: ToastType = Field(..., description="Visual style of the toast")
    message: str = Field(..., description="Text shown to the user")
    duration_ms: Optional[int] = Field(
        None, description="Auto-dismiss delay; 0 keeps the toast until dismissed"
    )


class HealthStatus(str, Enum):
    """Health status enum for health check responses."""

    OK = "ok"
    WARNING = "warning"
    ERROR = "error"
    DEGRADED = "degraded"


class ComponentHealth(BaseModel):
    """Health information for a single component."""

    status: HealthStatus = Field(..., description="Status of the component")
    message: Optional[str] = Field(
        None, description="Optional message about the component health"
    )


class HealthCheckResponse(BaseModel):
    """Standard health check response."""

    status: HealthStatus = Field(..., description="Overall service health status")
    version: str = Field(..., description="Service version")
    timestamp: datetime = Field(
        default_factory=datetime.utcnow, description="Timestamp of health check"
    )
    components: Dict[str, ComponentHealth] = Field(
        ..., description="Health of individual components"
    )
    uptime_seconds: Optional[float] = Field(
        None, description="Service uptime in seconds"
    )
