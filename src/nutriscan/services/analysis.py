"""Food analysis service using LLMs."""

import asyncio
import base64
import hashlib
import json
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from nutriscan.domain.analysis import (
    FoodAnalysis,
    NutritionTips,
    ParseResult,
)
from nutriscan.domain.meals import MealRecord
from nutriscan.services.cache import Cache

_logger = logging.getLogger(__name__)

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")

_MACRO_PROPERTIES = {
    name: {"type": "number", "minimum": 0}
    for name in ("protein", "carbs", "fat", "fiber", "sugar")
}

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "foodName": {"type": "string"},
        "calories": {"type": "number", "minimum": 0},
        "macros": {
            "type": "object",
            "properties": _MACRO_PROPERTIES,
            "required": list(_MACRO_PROPERTIES),
            "additionalProperties": False,
        },
        "recommendations": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["foodName", "calories", "macros", "recommendations"],
    "additionalProperties": False,
}

TIPS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {"tips": {"type": "array", "items": {"type": "string"}}},
    "required": ["tips"],
    "additionalProperties": False,
}

ANALYSIS_PROMPT = (
    "Analyze this meal and estimate its calories and main macronutrients "
    "(protein, carbs, fat, fiber, sugar) in grams for the whole portion. "
    "Then give 2-3 recommendations for a healthier next meal. "
    "Respond with JSON only, using exactly this structure: "
    '{"foodName": "dish name", "calories": number, '
    '"macros": {"protein": number, "carbs": number, "fat": number, '
    '"fiber": number, "sugar": number}, '
    '"recommendations": ["recommendation 1", "recommendation 2"]}'
)

DEFAULT_TIPS = [
    "Fill half your plate with vegetables to add fiber and volume.",
    "Include a source of protein in every meal to stay full longer.",
    "Drink water before meals; thirst is often mistaken for hunger.",
    "Prefer whole grains over refined carbs for steadier energy.",
]


class AnalysisClient(Protocol):
    """Interface for LLM text generation with structured output."""

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        image_data_url: str | None,
        schema: dict[str, object],
        schema_name: str,
    ) -> str:
        """Return the raw model output text."""


@dataclass
class FoodAnalysisService:
    """Service that prompts the model and validates its answers."""

    client: AnalysisClient
    cache: Cache
    model: str
    reasoning_effort: str | None
    store: bool
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3
    tips_ttl_seconds: int = 3600

    async def analyze(
        self,
        image: bytes | None = None,
        text: str | None = None,
        description: str | None = None,
    ) -> ParseResult[FoodAnalysis]:
        """Estimate nutrition for a meal photo and/or text description."""
        query = (text or "").strip()
        if not image and not query:
            raise ValueError("An image or a food description is required")

        prompt = ANALYSIS_PROMPT
        if query:
            prompt += f"\nDish name: {query}"
        if description and description.strip():
            prompt += f"\nAdditional details: {description.strip()}"
        data_url = _to_data_url(image) if image else None

        raw = await self._call_with_retry(
            lambda: self.client.generate(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                prompt=prompt,
                image_data_url=data_url,
                schema=ANALYSIS_SCHEMA,
                schema_name="food_analysis",
            ),
            action="analyze",
        )
        result = parse_food_analysis(raw, fallback_name=query or None)
        if not result.ok and result.error is not None:
            _logger.warning("Unparseable food analysis: %s", result.error.message)
        return result

    async def tips(self, meals: list[MealRecord], total_calories: float) -> list[str]:
        """Return short nutrition tips based on recent meals."""
        cache_key = _tips_cache_key(meals, total_calories)
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        recent = ", ".join(
            f"{meal.food_name} ({round(meal.calories)} kcal)" for meal in meals[:10]
        )
        prompt = (
            "Give 3 to 5 short, practical nutrition tips for this user. "
            f"Recent meals: {recent or 'none logged yet'}. "
            f"Calories consumed today: {round(total_calories)}. "
            'Respond with JSON only: {"tips": ["tip 1", "tip 2"]}'
        )
        raw = await self._call_with_retry(
            lambda: self.client.generate(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                prompt=prompt,
                image_data_url=None,
                schema=TIPS_SCHEMA,
                schema_name="nutrition_tips",
            ),
            action="tips",
        )
        result = parse_tips(raw)
        if result.value is None:
            _logger.warning(
                "Falling back to default tips: %s",
                result.error.message if result.error else "empty",
            )
            return list(DEFAULT_TIPS)
        self.cache.set(cache_key, result.value, ttl_seconds=self.tips_ttl_seconds)
        return result.value

    async def _call_with_retry(
        self, func: Callable[[], Awaitable[str]], *, action: str
    ) -> str:
        """Call the model with a short retry on transport errors."""
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "Analysis %s failed (attempt %s/%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def parse_food_analysis(
    text: str, fallback_name: str | None = None
) -> ParseResult[FoodAnalysis]:
    """Parse model output into a validated analysis without raising."""
    payload, error = _extract_json(text)
    if error is not None:
        return ParseResult.failure(error, text)
    if fallback_name and isinstance(payload, dict) and not payload.get("foodName"):
        payload["foodName"] = fallback_name
    try:
        return ParseResult.success(FoodAnalysis.model_validate(payload))
    except ValidationError as exc:
        return ParseResult.failure(
            f"Invalid analysis: {exc.error_count()} errors", text
        )


def parse_tips(text: str) -> ParseResult[list[str]]:
    """Parse model output into a list of non-empty tips without raising."""
    payload, error = _extract_json(text)
    if error is not None:
        return ParseResult.failure(error, text)
    try:
        tips = NutritionTips.model_validate(payload)
    except ValidationError as exc:
        return ParseResult.failure(f"Invalid tips: {exc.error_count()} errors", text)
    cleaned = [tip.strip() for tip in tips.tips if tip.strip()]
    if not cleaned:
        return ParseResult.failure("No tips in response", text)
    return ParseResult.success(cleaned)


def _extract_json(text: str) -> tuple[object, str | None]:
    """Decode the outermost JSON object, returning it or an error message."""
    if not text:
        return None, "Empty response"
    match = _JSON_BLOCK.search(text)
    if match is None:
        return None, "No JSON object found in response"
    try:
        return json.loads(match.group(0)), None
    except json.JSONDecodeError as exc:
        return None, f"Malformed JSON: {exc.msg}"


def _tips_cache_key(meals: list[MealRecord], total_calories: float) -> str:
    digest = hashlib.sha256(
        "|".join(str(meal.id) for meal in meals).encode("utf-8")
    ).hexdigest()[:16]
    return f"tips:{digest}:{round(total_calories)}"


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
