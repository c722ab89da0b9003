from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class ModelProviderName(str, Enum):
    llama_local = "llama_local"
    google = "google"
    openai = "openai"


class DescriptionResult(BaseModel):
    title: str = Field(..., description="First line of the description, or the caption for local models")
    description: str = Field("", description="Remaining lines of the description")


class SizeMeasurement(BaseModel):
    prediction_id: Optional[str] = None
    measurement_cm: float
    age: Optional[Any] = None
    social_connections: Optional[Any] = None
    wallet_address: Optional[str] = None


class MeasurementResponse(BaseModel):
    prediction_id: Optional[str] = None
    measurement_cm: float
    website_url: str
    formatted_text: str
