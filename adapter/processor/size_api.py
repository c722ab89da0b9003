import logging
from typing import Any, Dict, Optional

import aiohttp

from core.exceptions import ApiError, ValidationError
from domain.schemas.image import SizeMeasurement


logger = logging.getLogger(__name__)


def parse_measurement(value: Any) -> float:
    """Parse the API's measurement field, which arrives as a number or a numeric string."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid measurement: {value!r}")
    try:
        parsed = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid measurement: {value!r}") from e
    if parsed != parsed:
        raise ValidationError(f"Invalid measurement: {value!r}")
    return parsed


class SizeMeasurementClient:
    """Thin async client for the size measurement web API."""

    def __init__(self, base_url: str, api_key: Optional[str] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def fetch(self, image_url: str) -> SizeMeasurement:
        """POST an image URL to /api/measure and return the parsed measurement.

        Raises:
            ApiError: non-success HTTP status
            ValidationError: missing or non-numeric measurement
        """
        async with aiohttp.ClientSession() as session:
            async with session.post(
                f"{self.base_url}/api/measure",
                headers=self._headers(),
                json={"image_url": image_url},
            ) as resp:
                logger.info(f"[SizeApi] Measurement API response status: {resp.status}")
                if not resp.ok:
                    raise ApiError("Measurement", resp.status, await resp.text())
                data = await resp.json()

        if not isinstance(data, dict):
            raise ValidationError("Measurement API returned a non-object payload")
        logger.info(f"[SizeApi] Received measurement data: {data}")

        prediction_id = data.get("prediction_id")
        return SizeMeasurement(
            prediction_id=str(prediction_id) if prediction_id else None,
            measurement_cm=parse_measurement(data.get("measurement")),
            age=data.get("age"),
            social_connections=data.get("social_connections"),
            wallet_address=data.get("wallet_address"),
        )
