"""Food detection from meal photos."""

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError as SchemaValidationError

from nutrition_coach.domain.errors import ValidationError
from nutrition_coach.domain.vision import (
    DetectedItem,
    FoodDetectionResult,
    VisionExtract,
)
from nutrition_coach.services.nutrition import NutritionService

MAX_IMAGE_BYTES = 5 * 1024 * 1024
MAX_DETECTED_ITEMS = 5
MIN_CONFIDENCE = 0.5

NO_FOOD_MESSAGE = (
    "No food detected with sufficient confidence. "
    "Please try another photo or enter manually."
)
DETECTION_FAILED_MESSAGE = (
    "Failed to analyze image. Please try again or enter meal manually."
)

VISION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
                },
                "required": ["name", "confidence"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["items"],
    "additionalProperties": False,
}

_logger = logging.getLogger(__name__)


class VisionClient(Protocol):
    """Multimodal model that returns JSON matching a schema."""

    async def extract(
        self, *, image_data_url: str, schema: dict[str, object], prompt: str
    ) -> dict[str, object]:
        """Return the model's structured reply for an image."""


@dataclass
class FoodDetectionService:
    """Recognize food in a photo and enrich items with nutrition data."""

    client: VisionClient
    nutrition_service: NutritionService

    async def analyze(self, image_bytes: bytes) -> FoodDetectionResult:
        """Detect foods in an image; failures yield an unsuccessful result."""
        if not image_bytes:
            raise ValidationError("Image is required")
        if len(image_bytes) > MAX_IMAGE_BYTES:
            raise ValidationError("Image must be under 5MB")

        prompt = (
            "Identify the food items in the image. "
            "Return each item with a short common name and a confidence (0-1)."
        )
        try:
            raw = await self.client.extract(
                image_data_url=_to_data_url(image_bytes),
                schema=VISION_SCHEMA,
                prompt=prompt,
            )
            extract = VisionExtract.model_validate(raw)
        except SchemaValidationError as exc:
            _logger.warning("Vision response failed validation: %s", exc)
            return FoodDetectionResult(
                success=False, items=[], message=DETECTION_FAILED_MESSAGE
            )
        except Exception as exc:  # noqa: BLE001
            _logger.warning("Vision extraction failed: %s", exc)
            return FoodDetectionResult(
                success=False, items=[], message=DETECTION_FAILED_MESSAGE
            )

        candidates = sorted(
            extract.items, key=lambda item: item.confidence, reverse=True
        )[:MAX_DETECTED_ITEMS]
        confident = [item for item in candidates if item.confidence > MIN_CONFIDENCE]
        if not confident:
            return FoodDetectionResult(
                success=False, items=[], message=NO_FOOD_MESSAGE
            )

        nutrition = await asyncio.gather(
            *(self.nutrition_service.lookup(item.name) for item in confident)
        )
        items = [
            DetectedItem(
                name=item.name,
                confidence=round(item.confidence * 100),
                nutrition=data,
            )
            for item, data in zip(confident, nutrition, strict=True)
        ]
        return FoodDetectionResult(success=True, items=items)


def decode_image(image_base64: str) -> bytes:
    """Decode a base64 image, accepting an optional data URL prefix."""
    payload = image_base64.split(",", 1)[1] if "," in image_base64 else image_base64
    try:
        return base64.b64decode(payload, validate=True)
    except ValueError as exc:
        raise ValidationError("Image must be base64 encoded") from exc


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
