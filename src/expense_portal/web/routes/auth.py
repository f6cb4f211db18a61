"""
Auth Routes - login, registration and logout pages
"""
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse

from ...session.forms import LoginForm, RegisterForm
from ...session.store import DASHBOARD_PATH, LOGIN_PATH, SessionStore
from ..dependencies import Navigator, get_navigator, get_session_store, require_guest
from ..templating import render

router = APIRouter()


@router.get("/login")
async def login_page(request: Request, store: SessionStore = Depends(require_guest)):
    return render(request, "login.html", {"email": "", "error": None})


@router.post("/login")
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    store: SessionStore = Depends(require_guest),
    navigator: Navigator = Depends(get_navigator),
):
    form = LoginForm(store)
    result = await form.submit(email.strip(), password)
    if result.success:
        return RedirectResponse(url=navigator.path or DASHBOARD_PATH, status_code=303)
    return render(request, "login.html", {"email": form.email, "error": form.error}, status_code=400)


@router.get("/register")
async def register_page(request: Request, store: SessionStore = Depends(require_guest)):
    return render(request, "register.html", {"email": "", "error": None})


@router.post("/register")
async def register(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    store: SessionStore = Depends(require_guest),
    navigator: Navigator = Depends(get_navigator),
):
    form = RegisterForm(store)
    result = await form.submit(email.strip(), password, confirm_password)
    if result.success:
        return RedirectResponse(url=navigator.path or DASHBOARD_PATH, status_code=303)
    return render(request, "register.html", {"email": form.email, "error": form.error}, status_code=400)


@router.post("/logout")
async def logout(
    store: SessionStore = Depends(get_session_store),
    navigator: Navigator = Depends(get_navigator),
):
    store.logout()
    return RedirectResponse(url=navigator.path or LOGIN_PATH, status_code=303)
