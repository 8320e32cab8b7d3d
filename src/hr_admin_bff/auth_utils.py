# src/hr_admin_bff/auth_utils.py

import json
import logging
from typing import Any, Optional, Tuple
from urllib.parse import quote, unquote

import httpx
import pydantic
from fastapi import Request, Response

from .config import settings
from .errors import (
    InternalRelayError,
    MalformedUpstreamResponse,
    RelayError,
    UpstreamAuthError,
    ValidationError,
)
from .session_data import SessionContext, SessionTokens, UserInfo, split_full_name

logger = logging.getLogger(__name__)

UPSTREAM_LOGIN_PATH = "/api/v1/user-service/auth/login"

AUTH_TOKEN_COOKIE = "auth_token"
REFRESH_TOKEN_COOKIE = "refresh_token"
USER_INFO_COOKIE = "user_info"
SESSION_COOKIES = (AUTH_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, USER_INFO_COOKIE)

AUTH_TOKEN_MAX_AGE = 24 * 60 * 60  # 1 day
REFRESH_TOKEN_MAX_AGE = 30 * 24 * 60 * 60  # 30 days
USER_INFO_MAX_AGE = 24 * 60 * 60  # 1 day

_REQUIRED_LOGIN_FIELDS = ("token", "refreshToken", "email", "fullName", "employeeId")


# --- Credential Relay ---

def validate_credentials(body: Any) -> Tuple[Any, Any]:
    """Returns (email, password) or raises ValidationError if either is missing or empty."""
    if not isinstance(body, dict):
        raise ValidationError()
    email = body.get("email")
    password = body.get("password")
    if not email or not password:
        raise ValidationError()
    return email, password


def parse_login_envelope(payload: Any) -> Tuple[UserInfo, SessionTokens]:
    """
    Unpacks the identity service's `{"data": {token, refreshToken, email, fullName, employeeId}}`
    envelope. Anything partial is rejected as a whole so that cookies are never half-issued.
    """
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        logger.error("AUTH_UTILS: parse_login_envelope - success response has no 'data' object")
        raise MalformedUpstreamResponse()

    missing = [field for field in _REQUIRED_LOGIN_FIELDS if data.get(field) in (None, "")]
    if missing:
        logger.error("AUTH_UTILS: parse_login_envelope - success response missing fields: %s", missing)
        raise MalformedUpstreamResponse()

    full_name = data["fullName"]
    if not isinstance(full_name, str):
        logger.error("AUTH_UTILS: parse_login_envelope - 'fullName' is not a string")
        raise MalformedUpstreamResponse()
    first_name, last_name = split_full_name(full_name)

    employee_id = data["employeeId"]
    # bool is an int subclass; "42" and 42.0 are not ids either
    if not isinstance(employee_id, int) or isinstance(employee_id, bool):
        logger.error("AUTH_UTILS: parse_login_envelope - 'employeeId' is not an integer")
        raise MalformedUpstreamResponse()

    try:
        user = UserInfo(
            email=data["email"],
            first_name=first_name,
            last_name=last_name,
            full_name=full_name,
            user_id=employee_id,  # employee id doubles as the user id
        )
        tokens = SessionTokens(access_token=data["token"], refresh_token=data["refreshToken"])
    except pydantic.ValidationError as e:
        logger.error("AUTH_UTILS: parse_login_envelope - invalid field types: %s", e)
        raise MalformedUpstreamResponse() from e
    return user, tokens


def _upstream_error_message(response: httpx.Response) -> Optional[str]:
    try:
        error_data = response.json()
    except ValueError:
        return None
    if not isinstance(error_data, dict):
        return None
    message = error_data.get("message")
    return str(message) if message else None


async def relay_login(client: httpx.AsyncClient, email: Any, password: Any) -> Tuple[UserInfo, SessionTokens]:
    """
    Forwards the credentials to the identity service and returns the session to mint.
    No retries: a failed call surfaces immediately.
    """
    try:
        response = await client.post(
            UPSTREAM_LOGIN_PATH,
            json={"email": email, "password": password},
            headers={"Content-Type": "application/json"},
            follow_redirects=True,
        )

        if 300 <= response.status_code < 400:
            # 3xx left over after following means no usable Location
            logger.error("AUTH_UTILS: relay_login - identity service answered %s without a redirect target",
                         response.status_code)
            raise MalformedUpstreamResponse()

        if not response.is_success:
            message = _upstream_error_message(response)
            logger.info("AUTH_UTILS: relay_login - identity service rejected login with status %s",
                        response.status_code)
            raise UpstreamAuthError(response.status_code, message)

        try:
            payload = response.json()
        except ValueError as e:
            logger.exception("AUTH_UTILS: relay_login - identity service returned a non-JSON success body")
            raise InternalRelayError() from e

        user, tokens = parse_login_envelope(payload)
        logger.info("AUTH_UTILS: relay_login - login succeeded for user id %s", user.user_id)
        return user, tokens

    except RelayError:
        raise
    except httpx.HTTPError as e:
        logger.exception("AUTH_UTILS: relay_login - could not reach identity service at %s", settings.API_BASE_URL)
        raise InternalRelayError() from e
    except Exception as e:
        logger.exception("AUTH_UTILS: relay_login - unexpected error during login relay")
        raise InternalRelayError() from e


# --- Session Cookie Store ---

def _cookie_kwargs(max_age: int) -> dict:
    return {
        "max_age": max_age,
        "httponly": True,
        "secure": settings.COOKIE_SECURE,
        "samesite": "lax",
        "path": "/",
    }


def encode_user_info(user: UserInfo) -> str:
    return quote(json.dumps(user.to_public(), separators=(",", ":")), safe="")


def set_session_cookies(response: Response, user: UserInfo, tokens: SessionTokens) -> None:
    response.set_cookie(AUTH_TOKEN_COOKIE, tokens.access_token, **_cookie_kwargs(AUTH_TOKEN_MAX_AGE))
    response.set_cookie(REFRESH_TOKEN_COOKIE, tokens.refresh_token, **_cookie_kwargs(REFRESH_TOKEN_MAX_AGE))
    response.set_cookie(USER_INFO_COOKIE, encode_user_info(user), **_cookie_kwargs(USER_INFO_MAX_AGE))


def clear_session_cookies(response: Response) -> None:
    for name in SESSION_COOKIES:
        response.delete_cookie(
            name,
            path="/",
            secure=settings.COOKIE_SECURE,
            httponly=True,
            samesite="lax",
        )


# --- Session Reader ---

def read_user_info(request: Request) -> Optional[UserInfo]:
    """
    Rebuilds the profile from the `user_info` cookie.
    Returns None when there is no session or the cookie cannot be parsed; never raises.
    """
    raw = request.cookies.get(USER_INFO_COOKIE)
    if not raw:
        return None
    try:
        return UserInfo.model_validate(json.loads(unquote(raw)))
    except (json.JSONDecodeError, pydantic.ValidationError) as e:
        logger.warning("AUTH_UTILS: read_user_info - failed to parse user_info cookie: %s", e)
        return None


def get_auth_token(request: Request) -> Optional[str]:
    return request.cookies.get(AUTH_TOKEN_COOKIE) or None


def is_authenticated(request: Request) -> bool:
    return get_auth_token(request) is not None


def get_session_context(request: Request) -> SessionContext:
    return SessionContext(user=read_user_info(request), access_token=get_auth_token(request))
