from pathlib import Path

from fastapi import APIRouter, Request, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from weekly_menu import config
from weekly_menu.config import set_setting

router = APIRouter(prefix="/settings", tags=["settings"])
templates = Jinja2Templates(directory=Path(__file__).parent.parent / "templates")


@router.get("", response_class=HTMLResponse)
def settings_page(request: Request, saved: str = ""):
    key = config.ai_api_key() or ""
    masked = key[:8] + "..." if len(key) > 8 else ""
    return templates.TemplateResponse(request, "settings.html", {
        "active_tab": "settings",
        "key_set": bool(key),
        "masked_key": masked,
        "ai_api_url": config.ai_api_url(),
        "ai_model": config.ai_model(),
        "flash_message": "Settings saved." if saved else None,
        "flash_type": "success",
    })


@router.post("")
def settings_save(ai_api_key: str = Form("")):
    if ai_api_key.strip():
        set_setting("ai_api_key", ai_api_key.strip())
    return RedirectResponse(url="/settings?saved=1", status_code=303)
