"""Recipe generation gateway backends."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from mealweek.config import Settings, get_settings
from mealweek.errors import GenerationFailed
from mealweek.models.generation import GenerationRequest, GenerationResult
from mealweek.models.plan import MealCategory
from mealweek.models.recipe import GeneratedRecipe

from .variety import score_variety

DEFAULT_TIMEOUT = 60.0
_JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

RECIPE_SYSTEM_PROMPT = (
    "You are a professional recipe developer planning one meal of a weekly menu. Produce a single "
    "original recipe that respects every allergy and dietary restriction exactly; never include an "
    "ingredient the user is allergic to. Keep prep and cook time within the stated caps. "
    "Use plain units (cup, tbsp, tsp, g, kg, ml, l, oz, lb, piece, clove). The schema:\n"
    "{\n"
    '  "recipe": {\n'
    '    "name": "string",\n'
    '    "description": "one or two sentences",\n'
    '    "ingredients": [{"name": "string", "quantity": number, "unit": "string"}],\n'
    '    "instructions": ["step", "..."],\n'
    '    "nutrition": {"calories": number, "protein": number, "carbs": number, "fat": number, "fiber": number},\n'
    '    "prep_time": minutes, "cook_time": minutes, "servings": number,\n'
    '    "difficulty": "easy|medium|hard", "cuisine_type": "string", "meal_type": "string",\n'
    '    "tags": ["string"]\n'
    "  },\n"
    '  "confidence": number between 0 and 1,\n'
    '  "nutrition_accuracy": number between 0 and 1\n'
    "}\n"
    "Return only JSON."
)

logger = logging.getLogger(__name__)


class RecipeGenerationGateway(Protocol):
    """Protocol for recipe generation backends."""

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Return a candidate recipe for ``request`` or raise on failure."""


_MOCK_TEMPLATES: dict[MealCategory, list[dict[str, Any]]] = {
    MealCategory.BREAKFAST: [
        {
            "name": "Spinach and Feta Omelette",
            "cuisine_type": "mediterranean",
            "ingredients": [
                ("eggs", 3, "piece"),
                ("spinach", 1, "cups"),
                ("feta cheese", 30, "g"),
                ("olive oil", 1, "tablespoon"),
            ],
        },
        {
            "name": "Overnight Oats with Berries",
            "cuisine_type": "american",
            "ingredients": [
                ("rolled oats", 0.5, "cup"),
                ("milk", 0.75, "cup"),
                ("blueberry", 0.5, "cup"),
                ("honey", 1, "teaspoon"),
            ],
        },
    ],
    MealCategory.LUNCH: [
        {
            "name": "Chickpea Quinoa Bowl",
            "cuisine_type": "middle eastern",
            "ingredients": [
                ("quinoa", 0.5, "cup"),
                ("chickpeas", 1, "cans"),
                ("cucumber", 1, "piece"),
                ("tomato", 1, "piece"),
                ("lemon", 1, "piece"),
            ],
        },
        {
            "name": "Turkey Avocado Wrap",
            "cuisine_type": "american",
            "ingredients": [
                ("tortilla", 1, "piece"),
                ("turkey", 100, "g"),
                ("avocado", 0.5, "piece"),
                ("lettuce", 1, "cup"),
            ],
        },
    ],
    MealCategory.DINNER: [
        {
            "name": "Garlic Butter Salmon",
            "cuisine_type": "french",
            "ingredients": [
                ("salmon", 200, "g"),
                ("garlic", 2, "cloves"),
                ("butter", 1, "tbsp"),
                ("broccoli", 2, "cups"),
            ],
        },
        {
            "name": "Chicken Stir Fry",
            "cuisine_type": "chinese",
            "ingredients": [
                ("chicken breast", 250, "g"),
                ("bell pepper", 1, "piece"),
                ("soy sauce", 2, "tablespoons"),
                ("rice", 1, "cup"),
                ("ginger", 1, "teaspoon"),
            ],
        },
    ],
    MealCategory.SNACK: [
        {
            "name": "Apple Slices with Peanut Butter",
            "cuisine_type": "american",
            "ingredients": [("apple", 1, "piece"), ("peanut butter", 2, "tbsp")],
        },
        {
            "name": "Hummus and Carrot Sticks",
            "cuisine_type": "middle eastern",
            "ingredients": [("hummus", 0.25, "cup"), ("carrot", 2, "piece")],
        },
    ],
}


class MockRecipeGateway:
    """Deterministic recipe generator for development and tests."""

    def generate(self, request: GenerationRequest) -> GenerationResult:
        templates = _MOCK_TEMPLATES[request.meal_type]
        template = templates[len(request.variety_hints) % len(templates)]
        allergens = [allergy.strip().lower() for allergy in request.allergies if allergy.strip()]
        ingredients = [
            {"name": name, "quantity": quantity, "unit": unit}
            for name, quantity, unit in template["ingredients"]
            if not any(allergen in name for allergen in allergens)
        ]
        prep_time = 10 if request.max_prep_time is None else min(10, request.max_prep_time)
        cook_time = 15 if request.max_cook_time is None else min(15, request.max_cook_time)
        recipe = GeneratedRecipe.model_validate(
            {
                "name": template["name"],
                "description": f"A simple {request.meal_type.value} ready in under half an hour.",
                "ingredients": ingredients,
                "instructions": [
                    "Prepare all ingredients.",
                    "Cook and combine everything.",
                    "Serve immediately.",
                ],
                "nutrition": {"calories": 450, "protein": 25, "carbs": 40, "fat": 18, "fiber": 6},
                "prep_time": prep_time,
                "cook_time": cook_time,
                "servings": 2,
                "difficulty": (request.difficulty_level.value if request.difficulty_level else "easy"),
                "cuisine_type": template["cuisine_type"],
                "meal_type": request.meal_type.value,
                "tags": [request.meal_type.value, *request.dietary_restrictions],
            }
        )
        return GenerationResult(
            recipe=recipe,
            confidence=1.0,
            variety_score=score_variety(recipe.name, request.variety_hints),
            nutrition_accuracy=0.9,
        )


class HttpRecipeGateway:
    """Call an OpenAI/Ollama-compatible chat endpoint to generate recipes."""

    def __init__(
        self,
        *,
        base_url: str,
        model: str,
        provider: str,
        temperature: float,
        max_tokens: int,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._provider = (provider or "openai").strip().lower()
        self._temperature = max(0.0, float(temperature))
        self._max_tokens = max(1, int(max_tokens))
        self._api_key = api_key
        self._timeout = timeout if timeout and timeout > 0 else DEFAULT_TIMEOUT
        self._transport = transport

    def generate(self, request: GenerationRequest) -> GenerationResult:
        try:
            content = self._execute_chat(RECIPE_SYSTEM_PROMPT, build_user_prompt(request))
        except httpx.HTTPError as exc:
            logger.exception("Recipe LLM request failed")
            raise GenerationFailed(f"Recipe generation request failed: {exc}") from exc

        json_blob = _extract_json_blob(content)
        try:
            parsed = json.loads(json_blob)
        except json.JSONDecodeError as exc:
            snippet = json_blob.strip().replace("\n", " ")[:200]
            raise GenerationFailed(
                f"Recipe LLM returned invalid JSON: {exc}: payload={snippet}"
            ) from exc
        if not isinstance(parsed, dict):
            raise GenerationFailed("Recipe LLM returned a non-object payload")
        return _coerce_result(parsed, request)

    def _client(self) -> httpx.Client:
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else None
        return httpx.Client(timeout=self._timeout, headers=headers, transport=self._transport)

    def _execute_chat(self, system: str, user: str) -> str:
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]
        if self._provider == "ollama":
            endpoint = self._base_url
            if not endpoint.endswith("/api/chat"):
                endpoint = f"{endpoint}/api/chat"
            payload = {
                "model": self._model,
                "messages": messages,
                "stream": False,
                "format": "json",
                "options": {
                    "temperature": self._temperature,
                    "num_predict": self._max_tokens,
                },
            }
            with self._client() as client:
                response = client.post(endpoint, json=payload)
            response.raise_for_status()
            message = response.json().get("message") or {}
            content = (message.get("content") or "").strip()
            if not content:
                raise GenerationFailed("Ollama recipe response did not include content.")
            return content

        endpoint = self._base_url
        if not endpoint.endswith("/chat/completions"):
            endpoint = f"{endpoint}/chat/completions"
        payload = {
            "model": self._model,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
            "messages": messages,
        }
        with self._client() as client:
            response = client.post(endpoint, json=payload)
        response.raise_for_status()
        choices = response.json().get("choices") or []
        if not choices:
            raise GenerationFailed("Recipe LLM returned no choices.")
        message = choices[0].get("message") or {}
        content = (message.get("content") or "").strip()
        if not content:
            raise GenerationFailed("Recipe LLM returned an empty response.")
        return content


def build_user_prompt(request: GenerationRequest) -> str:
    lines = [f"Meal type: {request.meal_type.value}"]
    if request.allergies:
        lines.append(f"Allergies (must avoid): {', '.join(request.allergies)}")
    if request.dietary_restrictions:
        lines.append(f"Dietary restrictions: {', '.join(request.dietary_restrictions)}")
    if request.cuisine_preferences:
        lines.append(f"Preferred cuisines: {', '.join(request.cuisine_preferences)}")
    if request.max_prep_time is not None:
        lines.append(f"Maximum prep time: {request.max_prep_time} minutes")
    if request.max_cook_time is not None:
        lines.append(f"Maximum cook time: {request.max_cook_time} minutes")
    if request.difficulty_level is not None:
        lines.append(f"Difficulty: {request.difficulty_level.value}")
    if request.nutrition_targets is not None:
        targets = request.nutrition_targets.model_dump(exclude_none=True)
        if targets:
            lines.append(f"Nutrition targets per serving: {json.dumps(targets)}")
    if request.user_profile:
        lines.append(f"User profile: {json.dumps(request.user_profile, default=str)}")
    if request.variety_hints:
        lines.append(
            "Avoid repeating these recent recipes: " + "; ".join(request.variety_hints[:30])
        )
    lines.append("Return strict JSON using the schema described earlier.")
    return "\n".join(lines)


def _snake_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {_CAMEL_RE.sub("_", str(key)).lower(): _snake_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_snake_keys(item) for item in value]
    return value


def _score(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return min(max(number, 0.0), 1.0)


def _coerce_result(payload: dict[str, Any], request: GenerationRequest) -> GenerationResult:
    payload = _snake_keys(payload)
    recipe_payload = payload.get("recipe") if isinstance(payload.get("recipe"), dict) else payload
    try:
        recipe = GeneratedRecipe.model_validate(recipe_payload)
    except PydanticValidationError as exc:
        raise GenerationFailed(f"Recipe LLM returned a malformed recipe: {exc}") from exc

    variety = _score(payload.get("variety_score"))
    if variety is None:
        variety = score_variety(recipe.name, request.variety_hints)
    return GenerationResult(
        recipe=recipe,
        confidence=_score(payload.get("confidence")),
        variety_score=variety,
        nutrition_accuracy=_score(payload.get("nutrition_accuracy")),
    )


def _extract_json_blob(text: str) -> str:
    match = _JSON_BLOCK_RE.search(text)
    if match:
        return match.group(1).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        return text[start : end + 1].strip()
    return text.strip()


def build_recipe_gateway(settings: Settings | None = None) -> RecipeGenerationGateway:
    """Return the HTTP gateway when an LLM endpoint is configured, else the mock."""

    settings = settings or get_settings()
    if not settings.recipe_llm_base_url:
        logger.debug("No recipe LLM base URL configured; using mock gateway.")
        return MockRecipeGateway()
    return HttpRecipeGateway(
        base_url=settings.recipe_llm_base_url,
        model=settings.recipe_llm_model,
        provider=settings.recipe_llm_provider,
        temperature=settings.recipe_llm_temperature,
        max_tokens=settings.recipe_llm_max_tokens,
        api_key=settings.recipe_llm_api_key,
        timeout=settings.generation_timeout_seconds,
    )


__all__ = [
    "RecipeGenerationGateway",
    "MockRecipeGateway",
    "HttpRecipeGateway",
    "build_user_prompt",
    "build_recipe_gateway",
]
