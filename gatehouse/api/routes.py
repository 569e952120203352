"""Main application routes."""

from fastapi import APIRouter, Request, Depends
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from gatehouse.models.user import User
from gatehouse.services.auth.dependencies import get_current_user
from gatehouse.templating import TEMPLATES_DIR

router = APIRouter()
templates = Jinja2Templates(directory=TEMPLATES_DIR)


@router.get("/", response_class=HTMLResponse)
async def home(request: Request, user: User = Depends(get_current_user)):
    """Home page for the logged-in user."""
    return templates.TemplateResponse(request, "home.html", {"user": user})
