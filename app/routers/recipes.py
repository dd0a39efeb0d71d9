import logging
import re
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from weekly_menu.core import recipes as recipes_core
from weekly_menu.core.ai_assistant import AIError, draft_recipe
from weekly_menu.core.scaling import scale_ingredients
from weekly_menu.db.models import RECIPE_CATEGORIES, Ingredient, Recipe
from app.dependencies import require_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes", tags=["recipes"])
templates = Jinja2Templates(directory=Path(__file__).parent.parent / "templates")

CATEGORY_NAMES = {
    "breakfast": "Breakfast",
    "lunch": "Lunch",
    "dinner": "Dinner",
    "snack": "Snack",
    "dessert": "Dessert",
}


def _indices(form, pattern: str) -> list[int]:
    """Sorted row indices present in the form, tolerating gaps from deleted rows."""
    indices = set()
    for key in form.keys():
        m = re.match(pattern, key)
        if m:
            indices.add(int(m.group(1)))
    return sorted(indices)


def _collect_ingredients(form) -> list[Ingredient]:
    ingredients = []
    for i in _indices(form, r"ingredient_name_(\d+)$"):
        name = (form.get(f"ingredient_name_{i}") or "").strip()
        if name:
            ingredients.append(Ingredient(
                name=name,
                amount=(form.get(f"ingredient_amount_{i}") or "").strip(),
                unit=(form.get(f"ingredient_unit_{i}") or "").strip(),
            ))
    return ingredients


def _collect_steps(form) -> list[str]:
    steps = []
    for i in _indices(form, r"step_(\d+)$"):
        text = (form.get(f"step_{i}") or "").strip()
        if text:
            steps.append(text)
    return steps


def _parse_servings(value, default: int = 2) -> int:
    try:
        servings = int((value or "").strip())
    except (ValueError, AttributeError):
        return default
    return servings if servings >= 1 else default


def _recipe_from_form(form, user_id: int, recipe_id=None) -> Recipe:
    return Recipe(
        id=recipe_id,
        user_id=user_id,
        name=(form.get("name") or "").strip(),
        category=form.get("category") or "",
        description=(form.get("description") or "").strip() or None,
        servings=_parse_servings(form.get("servings")),
        ingredients=_collect_ingredients(form),
        steps=_collect_steps(form),
    )


def _dialog(request: Request, recipe, **kwargs):
    return templates.TemplateResponse(request, "partials/recipe_dialog.html", {
        "recipe": recipe,
        "ingredients": recipe.ingredients if recipe else [],
        "steps": recipe.steps if recipe else [],
        "categories": RECIPE_CATEGORIES,
        "category_names": CATEGORY_NAMES,
        **kwargs,
    })


def _get_or_404(user_id: int, recipe_id: int) -> Recipe:
    recipe = recipes_core.get(user_id, recipe_id)
    if recipe is None:
        raise HTTPException(status_code=404)
    return recipe


# ── List & search ──────────────────────────────────────────────────────────────

@router.get("", response_class=HTMLResponse)
def recipes_page(request: Request, user_id: int = Depends(require_user)):
    recipe_list = recipes_core.get_all(user_id)
    return templates.TemplateResponse(request, "recipes.html", {
        "active_tab": "recipes",
        "groups": recipes_core.group_by_category(recipe_list),
        "category_names": CATEGORY_NAMES,
        "q": "",
    })


@router.get("/list", response_class=HTMLResponse)
def recipes_list(request: Request, q: str = "", user_id: int = Depends(require_user)):
    recipe_list = recipes_core.search(user_id, q) if q else recipes_core.get_all(user_id)
    return templates.TemplateResponse(request, "partials/recipe_list.html", {
        "groups": recipes_core.group_by_category(recipe_list),
        "category_names": CATEGORY_NAMES,
        "q": q,
    })


# ── Add ────────────────────────────────────────────────────────────────────────

@router.get("/add", response_class=HTMLResponse)
def recipes_add_form(request: Request):
    return _dialog(request, None)


@router.post("/add")
async def recipes_add(request: Request, user_id: int = Depends(require_user)):
    form = await request.form()
    recipe = _recipe_from_form(form, user_id)
    try:
        recipe_id = recipes_core.add(recipe)
    except ValueError as e:
        return _dialog(request, recipe, flash_message=str(e), flash_type="error")
    return RedirectResponse(url=f"/recipes/{recipe_id}", status_code=303)


# ── Row helpers ────────────────────────────────────────────────────────────────

@router.get("/ingredient-row", response_class=HTMLResponse)
def ingredient_row(request: Request, index: int = 0):
    return templates.TemplateResponse(request, "partials/ingredient_row.html", {
        "i": index, "ing": None,
    })


@router.get("/step-row", response_class=HTMLResponse)
def step_row(request: Request, index: int = 0):
    return templates.TemplateResponse(request, "partials/step_row.html", {
        "i": index, "step": "",
    })


@router.post("/rescale", response_class=HTMLResponse)
async def recipes_rescale(request: Request):
    """Re-render the ingredient rows for a new serving count.

    Amounts are always scaled from the draft's base_amount_N fields and
    base_servings, which are passed through unchanged.  A row added after
    the draft has no base amount; its current amount is taken as the base.
    """
    form = await request.form()
    base = _parse_servings(form.get("base_servings"))
    target = _parse_servings(form.get("servings"), default=base)
    base_ingredients = []
    for i in _indices(form, r"ingredient_name_(\d+)$"):
        name = (form.get(f"ingredient_name_{i}") or "").strip()
        if not name:
            continue
        amount = form.get(f"base_amount_{i}")
        if amount is None:
            amount = form.get(f"ingredient_amount_{i}") or ""
        base_ingredients.append(Ingredient(
            name=name,
            amount=amount.strip(),
            unit=(form.get(f"ingredient_unit_{i}") or "").strip(),
        ))
    return templates.TemplateResponse(request, "partials/ingredient_rows.html", {
        "ingredients": scale_ingredients(base_ingredients, target, base),
        "base_amounts": [ing.amount for ing in base_ingredients],
        "base_servings": base,
    })


# ── AI: draft by dish name ────────────────────────────────────────────────────

@router.get("/ai/draft", response_class=HTMLResponse)
def ai_draft_form(request: Request):
    return templates.TemplateResponse(request, "partials/recipe_ai_form.html", {
        "recipe_id": None,
    })


@router.post("/ai/draft", response_class=HTMLResponse)
def ai_draft(
    request: Request,
    dish_name: str = Form(...),
    servings: str = Form("2"),
    user_id: int = Depends(require_user),
):
    count = _parse_servings(servings)
    empty = Recipe(id=None, name=dish_name.strip(), servings=count, user_id=user_id)
    try:
        draft, cached = draft_recipe(dish_name, count, user_id=user_id)
    except ValueError as e:
        return _dialog(request, empty, flash_message=str(e), flash_type="error")
    except AIError as e:
        logger.warning("Recipe draft for %r failed: %s", dish_name, e)
        return _dialog(
            request, empty,
            flash_message=f"Could not generate a recipe: {e}. Fill it in manually.",
            flash_type="error",
        )
    recipe = Recipe(
        id=None,
        name=draft.title,
        description=draft.description,
        servings=draft.servings,
        user_id=user_id,
        ingredients=draft.ingredients,
        steps=draft.steps,
    )
    return _dialog(
        request, recipe,
        is_ai_preview=True,
        base_servings=draft.servings,
        base_amounts=[ing.amount for ing in draft.ingredients],
        flash_message="Loaded from cache." if cached else "Recipe generated.",
        flash_type="success",
    )


# ── Detail, edit, delete ──────────────────────────────────────────────────────

@router.get("/{recipe_id}", response_class=HTMLResponse)
def recipe_detail(request: Request, recipe_id: int, servings: int = None, user_id: int = Depends(require_user)):
    recipe = _get_or_404(user_id, recipe_id)
    shown = servings if servings and servings >= 1 else recipe.servings
    ingredients = (
        recipe.ingredients if shown == recipe.servings
        else scale_ingredients(recipe.ingredients, shown, recipe.servings)
    )
    return templates.TemplateResponse(request, "partials/recipe_detail.html", {
        "recipe": recipe,
        "ingredients": ingredients,
        "shown_servings": shown,
        "category_names": CATEGORY_NAMES,
    })


@router.get("/{recipe_id}/edit", response_class=HTMLResponse)
def recipe_edit_form(request: Request, recipe_id: int, user_id: int = Depends(require_user)):
    return _dialog(request, _get_or_404(user_id, recipe_id))


@router.post("/{recipe_id}/edit", response_class=HTMLResponse)
async def recipe_edit(request: Request, recipe_id: int, user_id: int = Depends(require_user)):
    form = await request.form()
    recipe = _recipe_from_form(form, user_id, recipe_id=recipe_id)
    try:
        recipes_core.update(recipe)
    except LookupError:
        raise HTTPException(status_code=404)
    except ValueError as e:
        return _dialog(request, recipe, flash_message=str(e), flash_type="error")
    updated = recipes_core.get(user_id, recipe_id)
    return templates.TemplateResponse(request, "partials/recipe_detail.html", {
        "recipe": updated,
        "ingredients": updated.ingredients,
        "shown_servings": updated.servings,
        "category_names": CATEGORY_NAMES,
    })


@router.delete("/{recipe_id}")
def recipe_delete(recipe_id: int, user_id: int = Depends(require_user)):
    recipes_core.delete(user_id, recipe_id)
    return HTMLResponse("", headers={"HX-Redirect": "/recipes"})


# ── AI: regenerate ───────────────────────────────────────────────────────────

@router.post("/{recipe_id}/ai/regenerate", response_class=HTMLResponse)
async def ai_regenerate(request: Request, recipe_id: int, user_id: int = Depends(require_user)):
    """Fetch a fresh draft for the dialog's name and servings, keeping unsaved edits."""
    _get_or_404(user_id, recipe_id)
    form = await request.form()
    recipe = _recipe_from_form(form, user_id, recipe_id=recipe_id)
    if not recipe.name:
        return _dialog(request, recipe, flash_message="Enter a dish name", flash_type="error")
    try:
        draft, _ = draft_recipe(recipe.name, recipe.servings, user_id=user_id, refresh=True)
    except AIError as e:
        logger.warning("Recipe regeneration for %r failed: %s", recipe.name, e)
        return _dialog(
            request, recipe,
            flash_message=f"Could not regenerate the recipe: {e}",
            flash_type="error",
        )
    recipe.description = draft.description or recipe.description
    recipe.ingredients = draft.ingredients
    recipe.steps = draft.steps or recipe.steps
    return _dialog(
        request, recipe,
        is_ai_preview=True,
        flash_message="Recipe regenerated. Check the updated details.",
        flash_type="success",
    )
