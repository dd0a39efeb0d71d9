from datetime import date, timedelta
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from weekly_menu.core import meal_plan as mp_core, recipes as recipes_core
from weekly_menu.db.models import MEAL_TYPES
from app.dependencies import require_user
from app.routers.recipes import CATEGORY_NAMES

router = APIRouter(prefix="/planner", tags=["planner"])
templates = Jinja2Templates(directory=Path(__file__).parent.parent / "templates")

MEAL_TYPE_NAMES = {"breakfast": "Breakfast", "lunch": "Lunch", "dinner": "Dinner"}


def _parse_week(week_str: str = None) -> date:
    if week_str:
        try:
            return mp_core.get_week_start(date.fromisoformat(week_str))
        except (ValueError, TypeError):
            pass
    return mp_core.get_week_start()


def _week_context(user_id: int, week_start: date) -> dict:
    return {
        "week_start": week_start,
        "week_str": week_start.isoformat(),
        "week_dates": mp_core.week_dates(week_start),
        "day_names": mp_core.DAY_NAMES,
        "meal_types": MEAL_TYPES,
        "meal_type_names": MEAL_TYPE_NAMES,
        "week_grid": mp_core.get_week(user_id, week_start),
        "prev_week": (week_start - timedelta(days=7)).isoformat(),
        "next_week": (week_start + timedelta(days=7)).isoformat(),
        "today_week": mp_core.get_week_start().isoformat(),
    }


def _grid(request: Request, user_id: int, week_start: date, **kwargs):
    return templates.TemplateResponse(request, "partials/meal_grid.html", {
        **_week_context(user_id, week_start), **kwargs,
    })


# ── Page & grid ────────────────────────────────────────────────────────────────

@router.get("", response_class=HTMLResponse)
def planner_page(request: Request, week: str = None, user_id: int = Depends(require_user)):
    week_start = _parse_week(week)
    return templates.TemplateResponse(request, "planner.html", {
        "active_tab": "planner",
        "show_welcome": not mp_core.has_any(user_id),
        **_week_context(user_id, week_start),
    })


@router.get("/grid", response_class=HTMLResponse)
def planner_grid(request: Request, week: str = None, user_id: int = Depends(require_user)):
    return _grid(request, user_id, _parse_week(week))


# ── Recipe picker ──────────────────────────────────────────────────────────────

@router.get("/pick/{week}/{day}/{meal_type}", response_class=HTMLResponse)
def meal_picker(request: Request, week: str, day: int, meal_type: str, q: str = "", user_id: int = Depends(require_user)):
    if not 0 <= day <= 6 or meal_type not in MEAL_TYPES:
        raise HTTPException(status_code=404)
    week_start = _parse_week(week)
    recipe_list = recipes_core.search(user_id, q) if q else recipes_core.get_all(user_id)
    return templates.TemplateResponse(request, "partials/meal_picker.html", {
        "recipes": recipe_list,
        "category_names": CATEGORY_NAMES,
        "week_str": week_start.isoformat(),
        "day": day,
        "day_name": mp_core.DAY_NAMES[day],
        "meal_type": meal_type,
        "meal_type_name": MEAL_TYPE_NAMES[meal_type],
        "current": mp_core.get_week(user_id, week_start)[day][meal_type],
        "q": q,
    })


# ── Assign / remove ────────────────────────────────────────────────────────────

@router.post("/assign", response_class=HTMLResponse)
async def meal_assign(request: Request, user_id: int = Depends(require_user)):
    form = await request.form()
    week_start = _parse_week(form.get("week"))
    try:
        day = int(form.get("day", ""))
        recipe_id = int(form.get("recipe_id", ""))
    except ValueError:
        return _grid(request, user_id, week_start,
                     flash_message="Pick a recipe for the slot.", flash_type="error")
    meal_type = form.get("meal_type", "")
    try:
        mp_core.assign(user_id, week_start, day, meal_type, recipe_id)
    except LookupError:
        raise HTTPException(status_code=404)
    except ValueError as e:
        return _grid(request, user_id, week_start, flash_message=str(e), flash_type="error")
    return _grid(request, user_id, week_start)


@router.post("/remove", response_class=HTMLResponse)
async def meal_remove(request: Request, user_id: int = Depends(require_user)):
    form = await request.form()
    week_start = _parse_week(form.get("week"))
    try:
        slot_id = int(form.get("slot_id", ""))
    except ValueError:
        raise HTTPException(status_code=400)
    mp_core.remove(user_id, slot_id)
    return _grid(request, user_id, week_start)
