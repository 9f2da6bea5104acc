"""Dashboard routes — role-specific stats and recent activity."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from bitwork.services import applications, jobs, stats
from bitwork.services.jobs import JobFilters

from .dependencies import get_current_user, get_db

router = APIRouter(prefix="/dashboard")

RECENT_LIMIT = 5


@router.get("")
def dashboard_index(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)
    if not user.role:
        return RedirectResponse("/profile", status_code=303)

    if user.role == "provider":
        return request.app.state.templates.TemplateResponse("dashboard/provider.html", {
            "request": request,
            "user": user,
            "stats": stats.get_provider_stats(db, user.id),
            "my_jobs": jobs.get_provider_jobs(db, user.id),
            "recent_applications": applications.list_applications(db, user.id, "provider")[:RECENT_LIMIT],
        })

    page_size = request.app.state.config.web.page_size
    return request.app.state.templates.TemplateResponse("dashboard/seeker.html", {
        "request": request,
        "user": user,
        "stats": stats.get_seeker_stats(db, user.id),
        "latest_jobs": jobs.list_jobs(db, JobFilters(limit=page_size), viewer_id=user.id).jobs[:RECENT_LIMIT],
        "recent_applications": applications.list_applications(db, user.id, "seeker")[:RECENT_LIMIT],
    })
