import logging
from datetime import date
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from leadtrack.auth import AuthClient, Session
from leadtrack.client import CrmClient
from leadtrack.controller import VIEWS, LifecycleController
from leadtrack.display import find_user, relative_time, user_initials, user_name
from leadtrack.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    TransportError,
    ValidationFailed,
)
from leadtrack.models import Company, Status
from leadtrack.permissions import can_comment, can_delete, can_edit
from leadtrack.settings import HTTP_DEBUG, HTTP_HOST, HTTP_PORT, settings
from .deps import AppState, get_auth_client, get_client_factory, get_controller, get_state

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
    title="leadtrack API",
    version="0.1.0",
    description="HTTP layer over the company lifecycle controller for the browser front-end.",
)

# --- CORS ----------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


# --- Error mapping ---------------------------------------------------
@app.exception_handler(ValidationFailed)
async def validation_failed(request: Request, exc: ValidationFailed):
    return JSONResponse(
        status_code=422,
        content={"errors": [{"field": e.field, "message": e.message} for e in exc.errors]},
    )


@app.exception_handler(AuthorizationError)
async def not_allowed(request: Request, exc: AuthorizationError):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(TransportError)
async def transport_failed(request: Request, exc: TransportError):
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc), "retry": True})


# ---------- request bodies ----------
class LoginRequest(BaseModel):
    email: str
    password: str


class ContactIn(BaseModel):
    person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class CompanyIn(BaseModel):
    """Create or patch body; only the fields actually sent are applied."""
    name: Optional[str] = None
    contact: Optional[ContactIn] = None
    assigned_to: Optional[int] = None
    contact_date: Optional[date] = None
    meeting_date: Optional[date] = None
    status: Optional[Status] = None
    escalated_to: Optional[int] = None
    notes: Optional[str] = None

    def proposed(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=True)
        if self.contact is not None:
            data["contact"] = self.contact.model_dump(exclude_unset=True)
        return data


class CommentIn(BaseModel):
    content: str = Field(..., description="Comment text")


# ---------- projections ----------
def company_view(company: Company, ctl: LifecycleController) -> Dict[str, Any]:
    """A company plus the actions the current user is offered on it."""
    user = ctl.current_user
    return {
        "company": company,
        "can_edit": can_edit(user, company),
        "can_delete": can_delete(user, company),
        "can_comment": can_comment(user, company),
    }


# ---------- health-check ----------
@app.get("/")
def root():
    return {"status": "ok", "msg": "leadtrack API is alive"}


# ---------- session ----------
@app.post("/login")
async def login(
    body: LoginRequest,
    state: AppState = Depends(get_state),
    auth: AuthClient = Depends(get_auth_client),
    make_client: Callable[[Session], CrmClient] = Depends(get_client_factory),
):
    await state.close(auth)
    session = await auth.login(body.email, body.password)
    ctl = LifecycleController(session, make_client(session))
    state.controller = ctl
    await ctl.refresh()
    user = session.current_user
    return {"user": user, "name": user_name(user), "initials": user_initials(user)}


@app.post("/logout", status_code=204)
async def logout(state: AppState = Depends(get_state), auth: AuthClient = Depends(get_auth_client)):
    await state.close(auth)


# ---------- companies ----------
@app.get("/companies")
async def list_companies(
    view: str = Query("all", description=f"One of: {', '.join(VIEWS)}"),
    reload: bool = Query(False, description="Fetch fresh data from the backend first"),
    ctl: LifecycleController = Depends(get_controller),
):
    if view not in VIEWS:
        raise HTTPException(status_code=400, detail=f"Unknown view {view!r}")
    if reload:
        await ctl.refresh()
    return [company_view(c, ctl) for c in ctl.filter_companies(view)]


@app.get("/stats")
def stats(ctl: LifecycleController = Depends(get_controller)):
    return ctl.stats()


@app.post("/companies", status_code=201)
async def create_company(body: CompanyIn, ctl: LifecycleController = Depends(get_controller)):
    company = await ctl.create_company(body.proposed())
    return company_view(company, ctl)


@app.get("/companies/{company_id}")
def get_company(company_id: int, ctl: LifecycleController = Depends(get_controller)):
    return company_view(ctl.get_company(company_id), ctl)


@app.patch("/companies/{company_id}")
async def update_company(company_id: int, body: CompanyIn, ctl: LifecycleController = Depends(get_controller)):
    company = await ctl.update_company(company_id, body.proposed())
    return company_view(company, ctl)


@app.delete("/companies/{company_id}", status_code=204)
async def delete_company(company_id: int, ctl: LifecycleController = Depends(get_controller)):
    await ctl.delete_company(company_id)


@app.post("/companies/{company_id}/accept")
async def accept_escalation(company_id: int, ctl: LifecycleController = Depends(get_controller)):
    company = await ctl.accept_escalation(company_id)
    return company_view(company, ctl)


@app.get("/companies/{company_id}/candidates")
def escalation_candidates(company_id: int, ctl: LifecycleController = Depends(get_controller)):
    return [{"id": u.id, "name": user_name(u)} for u in ctl.escalation_candidates(company_id)]


# ---------- reminders ----------
@app.get("/reminders")
def reminders(ctl: LifecycleController = Depends(get_controller)):
    return ctl.recompute_reminders()


# ---------- comments ----------
@app.get("/companies/{company_id}/comments")
async def list_comments(company_id: int, ctl: LifecycleController = Depends(get_controller)):
    comments = await ctl.load_comments(company_id)
    now = ctl.now()
    return [
        {
            "comment": c,
            "author": user_name(find_user(ctl.users, c.user_id)),
            "initials": user_initials(find_user(ctl.users, c.user_id)),
            "age": relative_time(c.created_at, now),
            "mine": c.user_id == ctl.current_user.id,
        }
        for c in comments
    ]


@app.post("/companies/{company_id}/comments", status_code=201)
async def add_comment(company_id: int, body: CommentIn, ctl: LifecycleController = Depends(get_controller)):
    return await ctl.add_comment(company_id, body.content)


@app.put("/companies/{company_id}/comments/{comment_id}")
async def edit_comment(
    company_id: int, comment_id: int, body: CommentIn, ctl: LifecycleController = Depends(get_controller)
):
    return await ctl.edit_comment(company_id, comment_id, body.content)


@app.delete("/companies/{company_id}/comments/{comment_id}", status_code=204)
async def delete_comment(company_id: int, comment_id: int, ctl: LifecycleController = Depends(get_controller)):
    await ctl.delete_comment(company_id, comment_id)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host=HTTP_HOST, port=HTTP_PORT, reload=HTTP_DEBUG)
