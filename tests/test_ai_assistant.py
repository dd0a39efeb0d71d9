import json
import uuid

import httpx
import pytest

from weekly_menu import config
from weekly_menu.core import ai_assistant, recipe_cache
from weekly_menu.core.ai_assistant import (
    AIConfigError, InvalidAIResponse, UpstreamError,
    draft_recipe, extract_json_object, parse_recipe_draft, request_completion,
)

BORSCH = {
    "title": "Борщ",
    "description": "Классический борщ",
    "ingredients": [
        {"name": "свекла", "amount": "2", "unit": "шт"},
        {"name": "соль", "amount": "по вкусу", "unit": ""},
        {"name": "говядина", "amount": "500", "unit": "г"},
    ],
    "steps": ["Сварить бульон", "Добавить овощи"],
}


def _dish() -> str:
    return f"Борщ {uuid.uuid4().hex[:6]}"


def test_extract_json_object_with_surrounding_prose():
    text = 'Конечно! Вот рецепт:\n{"title": "A", "ingredients": []}\nПриятного аппетита {:)}'
    assert extract_json_object(text) == '{"title": "A", "ingredients": []}'


def test_extract_json_object_nested_and_braces_in_strings():
    text = 'x {"title": "a } b", "ingredients": [{"name": "{n}"}]} y {"other": 1}'
    assert json.loads(extract_json_object(text)) == {
        "title": "a } b", "ingredients": [{"name": "{n}"}],
    }


def test_extract_json_object_skips_unbalanced_prefix():
    assert extract_json_object('{ broken ... {"a": 1}') == '{"a": 1}'
    assert extract_json_object("no json here") is None
    assert extract_json_object('{"unterminated": 1') is None


def test_parse_recipe_draft():
    draft = parse_recipe_draft("Here you go: " + json.dumps(BORSCH, ensure_ascii=False), servings=4)
    assert draft.title == "Борщ"
    assert draft.servings == 4
    assert [i.name for i in draft.ingredients] == ["свекла", "соль", "говядина"]
    assert draft.ingredients[1].amount == "по вкусу"
    assert draft.steps == ["Сварить бульон", "Добавить овощи"]


def test_parse_recipe_draft_coerces_numeric_amounts():
    draft = parse_recipe_draft('{"title": "T", "ingredients": [{"name": "egg", "amount": 2}]}')
    assert (draft.ingredients[0].amount, draft.ingredients[0].unit) == ("2", "")
    assert draft.steps == []


@pytest.mark.parametrize("text", [
    "I can't help with that.",
    '{"title": "No ingredients"}',
    '{"title": "", "ingredients": []}',
    '{"title": "T", "ingredients": "flour, eggs"}',
    '{"ingredients": []}',
    "{not json}",
])
def test_parse_recipe_draft_invalid(text):
    with pytest.raises(InvalidAIResponse):
        parse_recipe_draft(text)


def test_request_completion_sends_chat_request(fake_ai):
    fake_ai.reply = "hello"
    assert request_completion("prompt text") == "hello"

    request = fake_ai.requests[0]
    assert request.method == "POST"
    assert str(request.url) == config.ai_api_url()
    assert request.headers["Authorization"] == "Bearer test-key"
    body = json.loads(request.content)
    assert body["model"] == config.ai_model()
    assert body["messages"] == [{"role": "user", "content": "prompt text"}]
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 1000
    assert body["stream"] is False


def test_request_completion_upstream_error(fake_ai):
    fake_ai.status = 401
    with pytest.raises(UpstreamError) as exc_info:
        request_completion("prompt")
    assert exc_info.value.status == 401
    assert exc_info.value.body == "upstream says no"


def test_request_completion_transport_error(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    monkeypatch.setattr(config, "ai_api_key", lambda: "test-key")
    monkeypatch.setattr(
        ai_assistant, "_http_client",
        lambda: httpx.Client(transport=httpx.MockTransport(handler)),
    )
    with pytest.raises(UpstreamError) as exc_info:
        request_completion("prompt")
    assert exc_info.value.status is None


def test_request_completion_without_key(monkeypatch):
    monkeypatch.setattr(config, "ai_api_key", lambda: None)
    with pytest.raises(AIConfigError):
        request_completion("prompt")


def test_draft_recipe_caches_by_normalized_name(fake_ai, user_id):
    dish = _dish()
    fake_ai.reply = "Рецепт:\n" + json.dumps(BORSCH, ensure_ascii=False)

    draft, cached = draft_recipe(dish, 2, user_id=user_id)
    assert cached is False
    assert draft.title == "Борщ"
    assert len(fake_ai.requests) == 1

    entry = recipe_cache.get(dish)
    assert entry.dish_name == dish.lower()
    assert entry.base_servings == 2
    assert entry.created_by == user_id

    again, cached = draft_recipe(f"  {dish.upper()} ", 2)
    assert cached is True
    assert len(fake_ai.requests) == 1
    assert [i.amount for i in again.ingredients] == ["2", "по вкусу", "500"]


def test_draft_recipe_scales_cached_draft(fake_ai):
    dish = _dish()
    fake_ai.reply = json.dumps(BORSCH, ensure_ascii=False)
    draft_recipe(dish, 2)

    scaled, cached = draft_recipe(dish, 6)
    assert cached is True
    assert scaled.servings == 6
    assert [i.amount for i in scaled.ingredients] == ["6", "по вкусу", "1500"]


def test_draft_recipe_refresh_replaces_cache(fake_ai):
    dish = _dish()
    fake_ai.reply = json.dumps(BORSCH, ensure_ascii=False)
    draft_recipe(dish, 2)

    fake_ai.reply = json.dumps({**BORSCH, "title": "Борщ 2.0"}, ensure_ascii=False)
    fresh, cached = draft_recipe(dish, 4, refresh=True)
    assert cached is False
    assert fresh.title == "Борщ 2.0"
    assert len(fake_ai.requests) == 2
    assert recipe_cache.get(dish).title == "Борщ 2.0"
    assert recipe_cache.get(dish).base_servings == 4


def test_draft_recipe_failure_is_not_cached(fake_ai):
    dish = _dish()
    fake_ai.reply = "Sorry, no recipe today."
    with pytest.raises(InvalidAIResponse):
        draft_recipe(dish, 2)
    assert recipe_cache.get(dish) is None


def test_draft_recipe_requires_name():
    with pytest.raises(ValueError):
        draft_recipe("   ", 2)


def test_normalize_dish_name():
    assert recipe_cache.normalize_dish_name("  Борщ Украинский ") == "борщ украинский"
