from pathlib import Path

from fastapi import APIRouter, Request, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from weekly_menu.core import users as users_core
from app.dependencies import create_session_token, current_user_id, SESSION_COOKIE, SESSION_MAX_AGE

router = APIRouter(tags=["auth"])
templates = Jinja2Templates(directory=Path(__file__).parent.parent / "templates")


def _logged_in_response(user_id: int) -> RedirectResponse:
    resp = RedirectResponse(url="/planner", status_code=302)
    resp.set_cookie(
        SESSION_COOKIE,
        create_session_token(user_id),
        httponly=True,
        samesite="lax",
        max_age=SESSION_MAX_AGE,
    )
    return resp


@router.get("/", response_class=HTMLResponse)
async def root():
    return RedirectResponse(url="/planner", status_code=302)


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request):
    if current_user_id(request) is not None:
        return RedirectResponse(url="/planner", status_code=302)
    return templates.TemplateResponse(request, "login.html")


@router.post("/login")
def login(request: Request, username: str = Form(""), password: str = Form("")):
    user = users_core.authenticate(username, password)
    if user is not None:
        return _logged_in_response(user.id)
    return templates.TemplateResponse(
        request,
        "login.html",
        {"error": "Invalid username or password", "username": username},
        status_code=200,
    )


@router.get("/signup", response_class=HTMLResponse)
def signup_page(request: Request):
    if current_user_id(request) is not None:
        return RedirectResponse(url="/planner", status_code=302)
    return templates.TemplateResponse(request, "signup.html")


@router.post("/signup")
def signup(request: Request, username: str = Form(""), password: str = Form("")):
    try:
        user_id = users_core.create(username, password)
    except ValueError as e:
        return templates.TemplateResponse(
            request,
            "signup.html",
            {"error": str(e), "username": username},
            status_code=200,
        )
    return _logged_in_response(user_id)


@router.post("/logout")
async def logout():
    resp = RedirectResponse(url="/login", status_code=302)
    resp.delete_cookie(SESSION_COOKIE)
    return resp
