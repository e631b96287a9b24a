"""
FastAPI HTTP Surface

Thin routes over RecruitLifecycle and the conferencing services.
Caller identity comes from the X-Operator-Id header; credential
verification happens upstream of this service. RecruitingError
subclasses are answered with their status code, and authorization
failures against the conferencing provider carry `authRequired` and
`authUrl` so the client can restart the OAuth flow.
"""

from dataclasses import dataclass
import logging
from urllib.parse import urlencode

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response
import pydantic
import structlog

from recruiting.api.schemas import (
    AuthInitiateResponse,
    MeetingCreateBody,
    MeetingPatchBody,
    OperatorSummary,
)
from recruiting.conferencing.config import ZoomConfig, get_zoom_config
from recruiting.conferencing.meetings import ConferenceMeetingService, default_meeting_settings
from recruiting.conferencing.oauth import OAuthTokenManager
from recruiting.conferencing.token_store import TokenStore
from recruiting.lifecycle.models import (
    AssignOwnerRequest,
    CompleteFinalRequest,
    CompleteInitialRequest,
    RecruitIntake,
    ScheduleInterviewRequest,
)
from recruiting.lifecycle.service import RecruitLifecycle
from recruiting.notifications.dispatcher import NotificationDispatcher
from recruiting.shared.config import Settings, get_settings
from recruiting.shared.exceptions import (
    RecruitingError,
    UpstreamAuthRequiredError,
)
from recruiting.shared.models.operator import Operator
from recruiting.shared.state_machine import InterviewPhase
from recruiting.shared.tools.dynamodb import load_operator

log = structlog.get_logger()


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for the HTTP process."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO))
    structlog.configure(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@dataclass
class Services:
    """Process-wide collaborators shared by all requests."""

    settings: Settings
    zoom: ZoomConfig
    tokens: OAuthTokenManager
    meetings: ConferenceMeetingService
    notifier: NotificationDispatcher
    lifecycle: RecruitLifecycle


def build_services(
    settings: Settings | None = None,
    zoom: ZoomConfig | None = None,
) -> Services:
    settings = settings or get_settings()
    zoom = zoom or get_zoom_config()
    tokens = OAuthTokenManager(config=zoom, store=TokenStore())
    meetings = ConferenceMeetingService(tokens, config=zoom)
    notifier = NotificationDispatcher(settings=settings)
    lifecycle = RecruitLifecycle(meetings=meetings, notifier=notifier, settings=settings)
    return Services(
        settings=settings,
        zoom=zoom,
        tokens=tokens,
        meetings=meetings,
        notifier=notifier,
        lifecycle=lifecycle,
    )


# =====================================================
# Dependencies
# =====================================================


def get_services(request: Request) -> Services:
    return request.app.state.services


def current_operator(
    x_operator_id: str | None = Header(default=None),
) -> Operator:
    """Resolve the acting operator from the X-Operator-Id header."""
    if not x_operator_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-Operator-Id")
    operator = load_operator(x_operator_id)
    if operator is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown operator")
    return operator


def _dump(model: pydantic.BaseModel) -> dict:
    return model.model_dump(mode="json", by_alias=True)


# =====================================================
# Application
# =====================================================


def create_app(services: Services | None = None) -> FastAPI:
    """Build the FastAPI application."""
    services = services or build_services()

    app = FastAPI(
        title="Recruiting API",
        description="Recruit interview lifecycle with Zoom scheduling",
        version="0.1.0",
    )
    app.state.services = services

    if not services.zoom.is_configured:
        log.warning("zoom_client_not_configured")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[services.settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RecruitingError)
    async def recruiting_error_handler(request: Request, exc: RecruitingError) -> JSONResponse:
        body = {
            "error": type(exc).__name__,
            "message": exc.message,
        }
        if isinstance(exc, UpstreamAuthRequiredError):
            body["authRequired"] = True
            body["authUrl"] = services.tokens.get_authorization_url(exc.operator_id).auth_url
        log.info(
            "request_failed",
            path=request.url.path,
            error=type(exc).__name__,
            status_code=exc.status_code,
        )
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "ValidationError", "message": "Invalid request", "details": jsonable_errors(exc.errors())},
        )

    @app.exception_handler(pydantic.ValidationError)
    async def model_validation_handler(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "ValidationError", "message": "Invalid request", "details": jsonable_errors(exc.errors())},
        )

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {
            "status": "ok",
            "environment": services.settings.environment,
            "version": "0.1.0",
            "zoomConfigured": services.zoom.is_configured,
        }

    # ===== Recruits =====

    @app.post("/recruits", status_code=status.HTTP_201_CREATED)
    def create_recruit(
        body: RecruitIntake,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return _dump(svc.lifecycle.create_recruit(body, actor))

    # Fixed paths are declared before /recruits/{recruit_id}
    @app.get("/recruits/mine")
    def my_recruits(
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return [_dump(r) for r in svc.lifecycle.list_my_recruits(actor)]

    @app.get("/recruits/team")
    def team_recruits(
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return [_dump(r) for r in svc.lifecycle.list_team_recruits(actor)]

    @app.get("/recruits/unit-managers")
    def unit_managers(
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return [_dump(OperatorSummary.from_operator(op)) for op in svc.lifecycle.list_unit_managers(actor)]

    @app.get("/recruits/{recruit_id}")
    def get_recruit(
        recruit_id: str,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return _dump(svc.lifecycle.get_recruit(recruit_id))

    @app.delete("/recruits/{recruit_id}")
    def delete_recruit(
        recruit_id: str,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return _dump(svc.lifecycle.delete_recruit(recruit_id, actor))

    @app.put("/recruits/{recruit_id}/schedule-initial")
    def schedule_initial(
        recruit_id: str,
        body: ScheduleInterviewRequest,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return _dump(svc.lifecycle.schedule_initial_interview(recruit_id, body, actor))

    @app.put("/recruits/{recruit_id}/complete-initial")
    def complete_initial(
        recruit_id: str,
        body: CompleteInitialRequest,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return _dump(svc.lifecycle.complete_initial_interview(recruit_id, body, actor))

    @app.put("/recruits/{recruit_id}/schedule-final")
    def schedule_final(
        recruit_id: str,
        body: ScheduleInterviewRequest,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return _dump(svc.lifecycle.schedule_final_interview(recruit_id, body, actor))

    @app.put("/recruits/{recruit_id}/complete-final")
    def complete_final(
        recruit_id: str,
        body: CompleteFinalRequest,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return _dump(svc.lifecycle.complete_final_interview(recruit_id, body, actor))

    @app.put("/recruits/{recruit_id}/assign")
    def assign_owner(
        recruit_id: str,
        body: AssignOwnerRequest,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return _dump(svc.lifecycle.assign_owner(recruit_id, body.assigned_to, actor))

    @app.post("/recruits/{recruit_id}/interviews/{phase}/meeting")
    def retry_meeting(
        recruit_id: str,
        phase: InterviewPhase,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return _dump(svc.lifecycle.retry_interview_meeting(recruit_id, phase, actor))

    @app.delete("/recruits/{recruit_id}/interviews/{phase}/meeting")
    def cancel_meeting(
        recruit_id: str,
        phase: InterviewPhase,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return _dump(svc.lifecycle.cancel_interview_meeting(recruit_id, phase, actor))

    # ===== Zoom OAuth =====

    @app.get("/zoom/auth/initiate")
    def zoom_auth_initiate(
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        request = svc.tokens.get_authorization_url(actor.operator_id)
        return _dump(AuthInitiateResponse(auth_url=request.auth_url, state=request.state))

    @app.get("/zoom/auth/callback")
    def zoom_auth_callback(
        code: str | None = Query(default=None),
        state: str | None = Query(default=None),
        error: str | None = Query(default=None),
        svc: Services = Depends(get_services),
    ):
        settings_url = f"{svc.settings.frontend_url.rstrip('/')}/settings"
        if error or not code or not state:
            reason = error or "Missing code or state"
            log.warning("zoom_auth_callback_rejected", reason=reason)
            return RedirectResponse(f"{settings_url}?{urlencode({'auth': 'error', 'error': reason})}")

        try:
            exchange = svc.tokens.exchange_code(code, state)
        except RecruitingError as e:
            log.warning("zoom_auth_callback_failed", error=type(e).__name__)
            return RedirectResponse(f"{settings_url}?{urlencode({'auth': 'error', 'error': e.message})}")

        log.info("zoom_auth_callback_succeeded", operator_id=exchange.operator_id)
        return RedirectResponse(f"{settings_url}?auth=success")

    @app.post("/zoom/disconnect")
    def zoom_disconnect(
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return {"disconnected": svc.tokens.disconnect(actor.operator_id)}

    @app.get("/zoom/status")
    def zoom_status(
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        connection = svc.meetings.check_connection(actor.operator_id)
        if not connection.connected:
            auth_url = svc.tokens.get_authorization_url(actor.operator_id).auth_url
            connection = connection.model_copy(update={"auth_url": auth_url})
        return _dump(connection)

    # ===== Zoom meetings =====

    @app.get("/zoom/meetings")
    def list_meetings(
        meeting_type: str = Query(default="scheduled", alias="type"),
        page_size: int = Query(default=30, ge=1, le=300, alias="pageSize"),
        next_page_token: str | None = Query(default=None, alias="nextPageToken"),
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        page = svc.meetings.list_meetings(
            actor.operator_id,
            meeting_type=meeting_type,
            page_size=page_size,
            next_page_token=next_page_token,
        )
        return _dump(page)

    @app.post("/zoom/meetings", status_code=status.HTTP_201_CREATED)
    def create_meeting(
        body: MeetingCreateBody,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        spec = body.to_spec(svc.zoom.default_meeting_duration, default_meeting_settings(svc.zoom))
        return _dump(svc.meetings.create_meeting(spec, actor.operator_id))

    @app.get("/zoom/meetings/{meeting_id}")
    def get_meeting(
        meeting_id: str,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return _dump(svc.meetings.get_meeting(meeting_id, actor.operator_id))

    @app.patch("/zoom/meetings/{meeting_id}")
    def update_meeting(
        meeting_id: str,
        body: MeetingPatchBody,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        return _dump(svc.meetings.update_meeting(meeting_id, body.to_update(), actor.operator_id))

    @app.delete("/zoom/meetings/{meeting_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_meeting(
        meeting_id: str,
        actor: Operator = Depends(current_operator),
        svc: Services = Depends(get_services),
    ):
        svc.meetings.delete_meeting(meeting_id, actor.operator_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


def jsonable_errors(errors: list) -> list[dict]:
    """Validation error details without unserializable context."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in errors
    ]
