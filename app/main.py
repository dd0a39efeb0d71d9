import logging
import os
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from weekly_menu.core import users as users_core
from weekly_menu.db.database import init_db
from app.dependencies import verify_session_token, is_public, SESSION_COOKIE
from app.routers import auth, recipes, meal_plan, shopping, settings

logging.basicConfig(
    level=getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=Path(__file__).parent / "templates")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(lifespan=lifespan)

app.mount("/static", StaticFiles(directory=Path(__file__).parent / "static"), name="static")


def _database_error_response(request: Request, exc: sqlite3.Error):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return templates.TemplateResponse(
        request,
        "partials/flash.html",
        {"flash_message": "Could not reach the database. Please try again.", "flash_type": "error"},
        status_code=503,
    )


@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    request.state.user_id = None
    token = request.cookies.get(SESSION_COOKIE)
    user_id = verify_session_token(token) if token else None
    try:
        user = users_core.get(user_id) if user_id is not None else None
    except sqlite3.Error as e:
        return _database_error_response(request, e)
    if user is not None:
        request.state.user_id = user_id
    elif not is_public(request.url.path):
        return RedirectResponse(url="/login", status_code=302)
    return await call_next(request)


@app.exception_handler(sqlite3.Error)
async def database_error_handler(request: Request, exc: sqlite3.Error):
    return _database_error_response(request, exc)


app.include_router(auth.router)
app.include_router(recipes.router)
app.include_router(meal_plan.router)
app.include_router(shopping.router)
app.include_router(settings.router)
