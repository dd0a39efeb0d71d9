"""AI recipe drafts: ask a chat-completion API for a recipe by dish name.

The endpoint is any OpenAI-compatible /chat/completions URL (DeepSeek by
default) called with httpx and a bearer key from the settings table.  The
model is asked for a strict JSON object; the first balanced {...} in its
reply is parsed into a RecipeDraft.  Drafts are cached by normalized dish
name so the same dish is only generated once; a cached draft is rescaled to
the requested serving count.
"""

import json
import logging
from typing import Optional

import httpx

from weekly_menu import config
from weekly_menu.core import recipe_cache
from weekly_menu.core.scaling import scale_ingredients
from weekly_menu.db.models import Ingredient, RecipeDraft

logger = logging.getLogger(__name__)

TEMPERATURE = 0.7
MAX_TOKENS = 1000

# JSON template included in the prompt so the model returns structured data.
RECIPE_SCHEMA = """
{
  "title": "Dish name",
  "description": "Short description",
  "ingredients": [
    {"name": "Ingredient", "amount": "quantity", "unit": "unit of measure"}
  ],
  "steps": ["Step 1", "Step 2"]
}
"""


class AIError(Exception):
    """Base class for recipe draft failures shown to the user as a notice."""


class AIConfigError(AIError):
    """No API key is configured."""


class InvalidAIResponse(AIError):
    """The completion did not contain a usable recipe object."""


class UpstreamError(AIError):
    """The HTTP call to the AI endpoint failed.

    status is the HTTP status code, or None when no response was received.
    """

    def __init__(self, status: Optional[int], body: str):
        self.status = status
        self.body = body
        if status is None:
            super().__init__(f"AI API request failed: {body}")
        else:
            super().__init__(f"AI API error: {status} - {body}")


def _http_client() -> httpx.Client:
    return httpx.Client(timeout=config.ai_timeout())


def build_prompt(dish_name: str, servings: int) -> str:
    return f"""You are a chef. Write a classic recipe for the dish "{dish_name}" for {servings} servings.
Answer in the language of the dish name. Amounts are plain numbers where possible
(e.g. "2", "0.5"); use a phrase like "to taste" only for seasonings.
Respond with strict JSON only, no extra text, matching this schema:
{RECIPE_SCHEMA}"""


def extract_json_object(text: str) -> Optional[str]:
    """Return the first balanced {...} substring of text, or None.

    Braces inside JSON string literals are ignored, so prose before or after
    the object and braces in step text don't confuse the match.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        start = text.find("{", start + 1)
    return None


def parse_recipe_draft(text: str, servings: int = 2) -> RecipeDraft:
    """Parse completion text into a RecipeDraft.

    Raises InvalidAIResponse if there is no JSON object, it doesn't parse,
    or title / ingredients (as a list) are missing.
    """
    json_str = extract_json_object(text or "")
    if json_str is None:
        raise InvalidAIResponse("No JSON object found in AI response")
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise InvalidAIResponse(f"AI response is not valid JSON: {e}")

    title = data.get("title")
    ingredients = data.get("ingredients")
    if not isinstance(title, str) or not title.strip() or not isinstance(ingredients, list):
        raise InvalidAIResponse("AI response is missing title or ingredients")

    steps = data.get("steps") or []
    if not isinstance(steps, list):
        steps = [steps]
    description = data.get("description")

    return RecipeDraft(
        title=title.strip(),
        description=str(description) if description else None,
        ingredients=[Ingredient.from_dict(ing) for ing in ingredients if isinstance(ing, dict)],
        steps=[str(step) for step in steps if str(step).strip()],
        servings=servings,
    )


def request_completion(prompt: str) -> str:
    """POST the prompt to the AI endpoint and return the completion text.

    Raises AIConfigError without an API key and UpstreamError when the call
    fails or returns a non-2xx status.
    """
    api_key = config.ai_api_key()
    if not api_key:
        raise AIConfigError("AI API key not set. Go to Settings to add your API key.")

    payload = {
        "model": config.ai_model(),
        "messages": [{"role": "user", "content": prompt}],
        "temperature": TEMPERATURE,
        "max_tokens": MAX_TOKENS,
        "stream": False,
    }
    try:
        with _http_client() as client:
            response = client.post(
                config.ai_api_url(),
                json=payload,
                headers={"Authorization": f"Bearer {api_key}"},
            )
    except httpx.HTTPError as e:
        raise UpstreamError(None, str(e))

    if not response.is_success:
        raise UpstreamError(response.status_code, response.text)

    try:
        data = response.json()
        return data["choices"][0]["message"]["content"] or ""
    except (ValueError, KeyError, IndexError, TypeError):
        raise InvalidAIResponse("Unexpected AI API response format")


def generate_recipe(dish_name: str, servings: int) -> RecipeDraft:
    """Ask the AI endpoint for a fresh draft. No cache involved."""
    logger.info("Generating recipe draft for %r (%d servings)", dish_name, servings)
    text = request_completion(build_prompt(dish_name, servings))
    return parse_recipe_draft(text, servings)


def draft_recipe(dish_name: str, servings: int, user_id: int = None, refresh: bool = False) -> tuple[RecipeDraft, bool]:
    """Return (draft, from_cache) for a dish name and serving count.

    A cached draft is scaled from the servings it was generated for.  On a
    miss, or when refresh is set, a new draft is generated and written to the
    cache before it is returned.
    """
    dish_name = (dish_name or "").strip()
    if not dish_name:
        raise ValueError("Dish name is required")
    if servings < 1:
        raise ValueError("Servings must be at least 1")

    if not refresh:
        cached = recipe_cache.get(dish_name)
        if cached is not None:
            logger.info("Using cached recipe draft for %r", cached.dish_name)
            return RecipeDraft(
                title=cached.title,
                description=cached.description,
                ingredients=scale_ingredients(cached.ingredients, servings, cached.base_servings),
                steps=list(cached.steps),
                servings=servings,
            ), True

    draft = generate_recipe(dish_name, servings)
    recipe_cache.save(dish_name, draft, servings, created_by=user_id, replace=refresh)
    return draft, False
