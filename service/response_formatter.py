import random
from typing import Optional

from core.settings import (
    FALLBACK_ONE_LINERS,
    FUNNY_RESPONSE_PROMPT,
    MEASUREMENT_RESPONSE_TEMPLATE,
    PLUGIN_RESPONSE_TEMPLATE,
)
from domain.schemas.image import MeasurementResponse, SizeMeasurement


def format_measurement(value: float) -> str:
    """Render 12.0 as '12' and 12.5 as '12.5'."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def measurement_url(base_url: str, prediction_id: Optional[str]) -> str:
    base_url = base_url.rstrip("/")
    return f"{base_url}/photo/{prediction_id}" if prediction_id else base_url


def measurement_title(value: float) -> str:
    return f"Size Measurement: {format_measurement(value)}cm"


def build_service_response(data: SizeMeasurement, base_url: str) -> MeasurementResponse:
    url = measurement_url(base_url, data.prediction_id)
    return MeasurementResponse(
        prediction_id=data.prediction_id,
        measurement_cm=data.measurement_cm,
        website_url=url,
        formatted_text=MEASUREMENT_RESPONSE_TEMPLATE.format(
            measurement=format_measurement(data.measurement_cm),
            measurement_url=url,
        ),
    )


def build_plugin_response(data: SizeMeasurement, base_url: str, one_liner: str) -> MeasurementResponse:
    url = measurement_url(base_url, data.prediction_id)
    return MeasurementResponse(
        prediction_id=data.prediction_id,
        measurement_cm=data.measurement_cm,
        website_url=url,
        formatted_text=PLUGIN_RESPONSE_TEMPLATE.format(
            one_liner=one_liner,
            measurement=format_measurement(data.measurement_cm),
            measurement_url=url,
        ),
    )


def funny_prompt(value: float) -> str:
    return FUNNY_RESPONSE_PROMPT.format(measurement=format_measurement(value))


def fallback_one_liner(value: float, rng: random.Random | None = None) -> str:
    template = (rng or random).choice(FALLBACK_ONE_LINERS)
    return template.format(measurement=format_measurement(value))
