"""Recommendation Generator - AI-authored fitness and nutrition guidance.

Calls the OpenAI chat completions API with the user's biometrics and
validates the JSON it returns. Any failure (network error, timeout,
malformed JSON, schema mismatch) is logged and answered with fixed
fallback content; generation never raises.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from openai import AsyncOpenAI

from ..core.errors import GeneratorFailure
from ..core.models import RecommendationKind, User
from ..core.recommendations import coerce_content, fallback_content
from ..core.units import format_height, kg_to_lb, round_half_up


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
DEFAULT_TIMEOUT_SECONDS = 20.0


@dataclass
class GeneratorConfig:
    """Configuration for the OpenAI generator.

    Attributes:
        api_key: OpenAI API key (None to read OPENAI_API_KEY)
        model: Chat model name
        timeout_seconds: Upper bound on one generation request
    """

    api_key: str | None = None
    model: str = DEFAULT_MODEL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


@dataclass(frozen=True)
class GeneratorInputs:
    """Biometrics the generator tailors its advice to."""

    age: int
    weight_kg: float
    height_cm: float
    target_weight_kg: float
    activity_level: str
    fitness_goal: str

    @classmethod
    def from_user(cls, user: User) -> "GeneratorInputs":
        return cls(
            age=user.age,
            weight_kg=user.weight,
            height_cm=user.height,
            target_weight_kg=user.target_weight,
            activity_level=user.activity_level,
            fitness_goal=user.fitness_goal,
        )


@dataclass(frozen=True)
class GeneratedContent:
    content: dict[str, Any] = field(default_factory=dict)
    is_fallback: bool = False


class RecommendationGenerator(Protocol):
    async def generate(
        self, kind: RecommendationKind, inputs: GeneratorInputs
    ) -> GeneratedContent: ...


SYSTEM_PROMPTS = {
    RecommendationKind.FITNESS: (
        "You are a certified fitness coach specializing in personalized workout "
        "programming. Provide evidence-based, safe recommendations."
    ),
    RecommendationKind.NUTRITION: (
        "You are a certified nutritionist specializing in personalized meal planning. "
        "Provide evidence-based, safe dietary recommendations."
    ),
}

RESPONSE_FORMATS = {
    RecommendationKind.FITNESS: """{
  "cardio": {"title": "Cardio Recommendation", "description": "..."},
  "strength": {"title": "Strength Training", "description": "..."},
  "flexibility": {"title": "Flexibility & Recovery", "description": "..."},
  "weeklySchedule": {
    "monday": {"workoutType": "Cardio", "color": "secondary"},
    "tuesday": {"workoutType": "Strength", "color": "primary"},
    "wednesday": {"workoutType": "Rest", "color": "gray"},
    "thursday": {"workoutType": "Cardio", "color": "secondary"},
    "friday": {"workoutType": "Strength", "color": "primary"},
    "saturday": {"workoutType": "Yoga", "color": "accent"},
    "sunday": {"workoutType": "Rest", "color": "gray"}
  }
}""",
    RecommendationKind.NUTRITION: """{
  "calorieTarget": {"title": "Calorie Target", "description": "...", "amount": 0},
  "proteinIntake": {"title": "Protein Intake", "description": "...", "amount": 0},
  "mealTiming": {"title": "Meal Timing", "description": "..."},
  "macroDistribution": {"protein": 40, "carbs": 30, "fats": 30},
  "mealPlan": {
    "breakfast": {"title": "Breakfast", "description": "...", "calories": 0, "protein": 0, "carbs": 0, "fats": 0},
    "lunch": {"title": "Lunch", "description": "...", "calories": 0, "protein": 0, "carbs": 0, "fats": 0},
    "dinner": {"title": "Dinner", "description": "...", "calories": 0, "protein": 0, "carbs": 0, "fats": 0}
  }
}""",
}


def build_prompt(kind: RecommendationKind, inputs: GeneratorInputs) -> str:
    """Render the user prompt for one recommendation kind."""
    kind = RecommendationKind(kind)
    return f"""Generate personalized {kind.value} recommendations for a user with the following characteristics:
- Age: {inputs.age} years
- Current weight: {inputs.weight_kg} kg ({round_half_up(kg_to_lb(inputs.weight_kg))} lbs)
- Height: {inputs.height_cm} cm ({format_height(inputs.height_cm)})
- Target weight: {inputs.target_weight_kg} kg ({round_half_up(kg_to_lb(inputs.target_weight_kg))} lbs)
- Activity level: {inputs.activity_level}
- Fitness goal: {inputs.fitness_goal}

Respond with JSON only, using exactly this structure:
{RESPONSE_FORMATS[kind]}

Macro percentages must sum to 100. The recommendations should be evidence-based,
safe, and tailored to the user's specific parameters."""


class OpenAIRecommendationGenerator:
    """Generator backed by OpenAI chat completions in JSON mode."""

    def __init__(
        self,
        config: GeneratorConfig | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.config = config or GeneratorConfig()
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy initialization of the OpenAI client (no automatic retries)."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.config.api_key,
                timeout=self.config.timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def _complete(self, kind: RecommendationKind, inputs: GeneratorInputs) -> Any:
        response = await self.client.chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPTS[kind]},
                {"role": "user", "content": build_prompt(kind, inputs)},
            ],
            response_format={"type": "json_object"},
        )
        text = response.choices[0].message.content
        if not text:
            raise GeneratorFailure("empty completion")
        return json.loads(text)

    async def generate(
        self, kind: RecommendationKind, inputs: GeneratorInputs
    ) -> GeneratedContent:
        """Generate content for one kind, falling back on any failure.

        Args:
            kind: fitness or nutrition
            inputs: The user's biometrics

        Returns:
            Validated content, or fallback content flagged is_fallback
        """
        kind = RecommendationKind(kind)
        try:
            raw = await asyncio.wait_for(
                self._complete(kind, inputs), timeout=self.config.timeout_seconds
            )
            content = coerce_content(kind, raw)
        except asyncio.TimeoutError:
            logger.error(
                "%s generation timed out after %ss; serving fallback",
                kind.value, self.config.timeout_seconds,
            )
            return GeneratedContent(fallback_content(kind), is_fallback=True)
        except Exception as e:
            logger.error("%s generation failed; serving fallback: %s", kind.value, str(e))
            return GeneratedContent(fallback_content(kind), is_fallback=True)

        logger.info("Generated %s recommendation with %s", kind.value, self.config.model)
        return GeneratedContent(content)
