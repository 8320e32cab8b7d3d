# src/hr_admin_bff/main.py

import logging
import typing
from pathlib import Path

import httpx
from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from . import auth_utils
from .api_client import UpstreamApiClient, get_upstream_client
from .config import configure_logging, settings
from .errors import RelayError, UpstreamHTTPError
from .route_guard import RouteGuardMiddleware
from .session_data import SessionContext

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
EMPLOYEES_UPSTREAM_PATH = "/api/v1/company-service/employees"

configure_logging()

# --- FastAPI App Setup ---
app = FastAPI(
    title="HR Admin Console BFF",
    description="Backend-For-Frontend for the HR admin console: login relay, session cookies and route guard.",
    version="0.1.0"
)

app.add_middleware(RouteGuardMiddleware)

templates = Jinja2Templates(directory=PACKAGE_DIR / "templates")


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


# --- Favicon Route ---
@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    favicon_path = PACKAGE_DIR / "static" / "favicon.ico"
    if favicon_path.is_file():
        return FileResponse(favicon_path, media_type="image/x-icon")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Authentication Routes ---
@app.post("/api/auth/login")
async def login(request: Request, client: httpx.AsyncClient = Depends(get_upstream_client)):
    try:
        body = await request.json()
    except ValueError:
        body = None
    email, password = auth_utils.validate_credentials(body)

    user, tokens = await auth_utils.relay_login(client, email, password)

    response = JSONResponse({"success": True, "user": user.to_public()})
    auth_utils.set_session_cookies(response, user, tokens)
    return response


@app.post("/api/auth/logout")
async def logout(session: SessionContext = Depends(auth_utils.get_session_context)):
    user_id = session.user.user_id if session.user else None
    logger.info("MAIN: /api/auth/logout - clearing session cookies (user id: %s)", user_id)
    response = JSONResponse({"success": True})
    auth_utils.clear_session_cookies(response)
    return response


@app.get("/api/profile")
async def get_profile(request: Request):
    user_info = auth_utils.read_user_info(request)
    if not user_info:
        return JSONResponse({"error": "Not authenticated"}, status_code=status.HTTP_401_UNAUTHORIZED)
    return {"success": True, "data": user_info.to_public()}


# --- Upstream passthrough ---
def _employees_error(e: UpstreamHTTPError, fallback: str, passthrough_bad_request: bool = False) -> JSONResponse:
    if e.status_code == status.HTTP_401_UNAUTHORIZED:
        return JSONResponse({"error": "Unauthorized"}, status_code=status.HTTP_401_UNAUTHORIZED)
    if e.status_code == status.HTTP_403_FORBIDDEN:
        return JSONResponse({"error": "Forbidden"}, status_code=status.HTTP_403_FORBIDDEN)
    if passthrough_bad_request and e.status_code == status.HTTP_400_BAD_REQUEST:
        return JSONResponse({"error": str(e)}, status_code=status.HTTP_400_BAD_REQUEST)
    return JSONResponse({"error": fallback}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.get("/api/employees")
async def list_employees(
        request: Request,
        session: SessionContext = Depends(auth_utils.get_session_context),
        client: httpx.AsyncClient = Depends(get_upstream_client),
):
    params = {key: request.query_params.getlist(key) for key in request.query_params.keys()}
    api = UpstreamApiClient(client, session.access_token)
    try:
        result = await api.get(EMPLOYEES_UPSTREAM_PATH, params)
    except UpstreamHTTPError as e:
        logger.warning("MAIN: /api/employees - upstream error: %s", e)
        return _employees_error(e, "Failed to fetch employees")
    except (httpx.HTTPError, ValueError):
        logger.exception("MAIN: /api/employees - could not fetch employees")
        return JSONResponse({"error": "Failed to fetch employees"},
                            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    result = result if isinstance(result, dict) else {}
    return {"success": True, "data": result.get("data"), "total": result.get("total")}


@app.post("/api/employees")
async def create_employee(
        request: Request,
        session: SessionContext = Depends(auth_utils.get_session_context),
        client: httpx.AsyncClient = Depends(get_upstream_client),
):
    api = UpstreamApiClient(client, session.access_token)
    try:
        body = await request.json()
        result = await api.post(EMPLOYEES_UPSTREAM_PATH, body)
    except UpstreamHTTPError as e:
        logger.warning("MAIN: POST /api/employees - upstream error: %s", e)
        return _employees_error(e, "Failed to create employee", passthrough_bad_request=True)
    except (httpx.HTTPError, ValueError):
        logger.exception("MAIN: POST /api/employees - could not create employee")
        return JSONResponse({"error": "Failed to create employee"},
                            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return {"success": True, "data": result}


# --- Page shell ---
def _render_page(request: Request, session: SessionContext, title: str) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "index.html",
        {"user": session.user, "title": title},
    )


@app.get("/", response_class=HTMLResponse)
async def read_root(request: Request, session: SessionContext = Depends(auth_utils.get_session_context)):
    return _render_page(request, session, "Dashboard")


@app.get("/employees", response_class=HTMLResponse)
async def employees_page(request: Request, session: SessionContext = Depends(auth_utils.get_session_context)):
    return _render_page(request, session, "Employees")


@app.get("/settings/general", response_class=HTMLResponse)
async def settings_page(request: Request, session: SessionContext = Depends(auth_utils.get_session_context)):
    return _render_page(request, session, "General settings")


@app.get("/sign-in", response_class=HTMLResponse)
async def sign_in_page(request: Request, redirect: typing.Optional[str] = None):
    # Only same-site paths are followed after login.
    target = redirect if redirect and redirect.startswith("/") and not redirect.startswith("//") else "/"
    return templates.TemplateResponse(request, "sign_in.html", {"redirect": target})


# --- Startup Event ---
@app.on_event("startup")
async def startup_event():
    logger.info("--- HR Admin Console BFF (FastAPI) Starting Up ---")
    logger.info("Upstream API base URL: %s", settings.API_BASE_URL)
    logger.info("Environment: %s (secure cookies: %s)", settings.ENVIRONMENT, settings.COOKIE_SECURE)
    logger.info("Protected route prefixes: %s", settings.PROTECTED_ROUTE_PREFIXES)
    logger.info("Auth route prefixes: %s", settings.AUTH_ROUTE_PREFIXES)
