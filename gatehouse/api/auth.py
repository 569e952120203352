"""Authentication routes for login and logout."""

from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from gatehouse.config import settings
from gatehouse.database import get_db
from gatehouse.models.user import User
from gatehouse.services.auth import get_auth_provider
from gatehouse.services.auth.dependencies import get_optional_user
from gatehouse.services.auth.login import LoginFailure, blank_session_cookie, login
from gatehouse.templating import TEMPLATES_DIR


router = APIRouter(tags=["auth"])
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


@router.get("/login", response_class=HTMLResponse)
async def login_page(
    request: Request,
    user: Optional[User] = Depends(get_optional_user),
):
    """Login page. Redirects to home if already logged in."""
    if user:
        return RedirectResponse(url="/", status_code=303)

    return templates.TemplateResponse(
        request, "login.html", {"message": None, "username": ""}
    )


@router.post("/login")
async def login_action(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
):
    """Process login form."""
    result = await login(db, username, password, request=request)

    if isinstance(result, LoginFailure):
        if _wants_html(request):
            return templates.TemplateResponse(
                request,
                "login.html",
                {"message": result.message, "username": username},
                status_code=result.status_code,
            )
        return JSONResponse(
            status_code=result.status_code, content={"message": result.message}
        )

    response = RedirectResponse(url=result.redirect_to, status_code=result.status_code)
    result.cookie.apply(response)
    return response


@router.post("/logout")
async def logout(request: Request, db: Session = Depends(get_db)):
    """Logout and clear session."""
    auth_provider = get_auth_provider()

    token = request.cookies.get(settings.session_cookie_name)
    if token:
        await auth_provider.invalidate_session(db, token)

    response = RedirectResponse(url="/login", status_code=302)
    blank_session_cookie().apply(response)
    return response
