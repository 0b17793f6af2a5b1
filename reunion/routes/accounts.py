"""Account routes: sign-up page, account creation and password login."""
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, EmailStr, Field

from reunion.collaborators import Collaborators, get_collaborators
from reunion.core.config import settings
from reunion.core.errors import HumanVerificationFailed
from reunion.core.ratelimit import registration_rate_limit

router = APIRouter(tags=["accounts"])
templates = Jinja2Templates(directory=Path(__file__).resolve().parent.parent / "templates")


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    captcha_token: str | None = Field(default=None, alias="captchaToken")


class LoginRequest(BaseModel):
    email: str
    password: str


@router.get("/signup", response_class=HTMLResponse)
async def signup_page(request: Request):
    """Render the sign-up form with the reCAPTCHA site key filled in."""
    return templates.TemplateResponse(
        request,
        "signup.html",
        {"app_name": settings.app_name, "site_key": settings.recaptcha_site_key},
    )


@router.post("/signup", dependencies=[Depends(registration_rate_limit)])
async def signup(
    body: SignupRequest,
    collaborators: Collaborators = Depends(get_collaborators),
):
    """
    Create an account after a passing human-verification check.

    Returns 403 when the CAPTCHA token is missing or scores too low.
    """
    if not await collaborators.captcha.verify(body.captcha_token):
        raise HumanVerificationFailed("Bot activity detected.")

    account = await collaborators.identity.create_account(body.email, body.password)
    return {
        "message": "Account created! Please check your email for verification.",
        "user": account["user"],
        "session": account["session"],
    }


@router.post("/login")
async def login(
    body: LoginRequest,
    collaborators: Collaborators = Depends(get_collaborators),
):
    """Log in with email and password; 401 when the credentials are rejected."""
    session = await collaborators.identity.password_login(body.email, body.password)
    return {"message": "Login successful", "session": session}
