from datetime import date, timedelta
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.templating import Jinja2Templates

from weekly_menu.core import meal_plan as mp_core
from weekly_menu.core.shopping_list import (
    for_week, format_shopping_list, format_week_range, group_by_category,
)
from app.dependencies import require_user

router = APIRouter(prefix="/shopping", tags=["shopping"])
templates = Jinja2Templates(directory=Path(__file__).parent.parent / "templates")


def _parse_week(week_str: str = None) -> date:
    if week_str:
        try:
            return mp_core.get_week_start(date.fromisoformat(week_str))
        except (ValueError, TypeError):
            pass
    return mp_core.get_week_start()


def _list_context(user_id: int, week_start: date) -> dict:
    # Recomputed on every view, so checkbox state always starts unchecked.
    items = for_week(user_id, week_start)
    return {
        "items": items,
        "groups": group_by_category(items),
        "week_str": week_start.isoformat(),
        "week_label": format_week_range(week_start),
        "prev_week": (week_start - timedelta(days=7)).isoformat(),
        "next_week": (week_start + timedelta(days=7)).isoformat(),
        "today_week": mp_core.get_week_start().isoformat(),
    }


@router.get("", response_class=HTMLResponse)
def shopping_page(request: Request, week: str = None, user_id: int = Depends(require_user)):
    return templates.TemplateResponse(request, "shopping.html", {
        "active_tab": "shopping",
        **_list_context(user_id, _parse_week(week)),
    })


@router.get("/list", response_class=HTMLResponse)
def shopping_list(request: Request, week: str = None, user_id: int = Depends(require_user)):
    return templates.TemplateResponse(request, "partials/shopping_list.html",
                                      _list_context(user_id, _parse_week(week)))


@router.post("/export")
async def shopping_export(request: Request, user_id: int = Depends(require_user)):
    form = await request.form()
    week_start = _parse_week(form.get("week"))
    items = for_week(user_id, week_start)
    text = format_shopping_list(items, format_week_range(week_start), form.getlist("checked"))
    return PlainTextResponse(text, headers={
        "Content-Disposition": f"attachment; filename=shopping-list-{week_start.isoformat()}.txt",
    })
