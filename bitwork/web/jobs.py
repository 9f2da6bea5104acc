"""Job routes — browse, post, edit, status, delete, bookmark."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from bitwork.models import JOB_STATUSES, Job
from bitwork.services import applications, jobs, saved_jobs
from bitwork.services.jobs import JOB_TRANSITIONS, JobFilters

from .dependencies import flash, get_current_user, get_db, respond, wants_json

router = APIRouter(prefix="/jobs")

JOB_FORM_FIELDS = (
    "title", "description", "category", "budget", "hourly_rate",
    "state", "city", "duration", "skills",
)


async def _job_form(request: Request) -> dict:
    form = await request.form()
    data = {key: form.get(key, "") for key in JOB_FORM_FIELDS}
    data["has_timeline"] = form.get("has_timeline", "")
    return data


def _not_found(request: Request, user, message: str = "This job does not exist or was removed."):
    return request.app.state.templates.TemplateResponse(
        "error.html", {"request": request, "user": user, "error": message}, status_code=404
    )


@router.get("")
def jobs_list(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    page_size = request.app.state.config.web.page_size
    filters = JobFilters.from_params(request.query_params, limit=page_size if page_size > 0 else 12)
    result = jobs.list_jobs(db, filters, viewer_id=user.id)

    return request.app.state.templates.TemplateResponse("jobs/list.html", {
        "request": request,
        "user": user,
        "result": result,
        "filters": filters,
        "statuses": JOB_STATUSES,
    })


@router.get("/saved")
def saved_list(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    return request.app.state.templates.TemplateResponse("jobs/saved.html", {
        "request": request,
        "user": user,
        "jobs": saved_jobs.get_saved_jobs(db, user.id),
    })


@router.get("/new")
def new_job_form(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    return request.app.state.templates.TemplateResponse("jobs/form.html", {
        "request": request,
        "user": user,
        "job": None,
        "values": {},
    })


@router.post("/new")
async def create_job(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    data = await _job_form(request)
    result = jobs.create_job(db, data, provider_id=user.id)
    if not result.success:
        return request.app.state.templates.TemplateResponse("jobs/form.html", {
            "request": request,
            "user": user,
            "job": None,
            "values": data,
            "flash_message": result.error,
            "flash_type": "error",
        }, status_code=400)

    return respond(
        request, result, f"/jobs/{result.data.id}", "Job posted successfully!",
        payload={"id": result.data.id}, prefer_referer=False,
    )


@router.get("/{job_id}")
def job_detail(job_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    item = jobs.get_job_by_id(db, job_id, viewer_id=user.id)
    if item is None:
        return _not_found(request, user)

    is_owner = item.job.provider_id == user.id
    job_applications = []
    if is_owner:
        job_applications = [
            a for a in applications.list_applications(db, user.id, "provider") if a.job.id == job_id
        ]

    return request.app.state.templates.TemplateResponse("jobs/detail.html", {
        "request": request,
        "user": user,
        "item": item,
        "is_owner": is_owner,
        "has_applied": applications.has_applied(db, user.id, job_id),
        "applications": job_applications,
        "next_statuses": sorted(JOB_TRANSITIONS.get(item.job.status, ())),
    })


@router.get("/{job_id}/edit")
def edit_job_form(job_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    job = db.get(Job, job_id)
    if job is None or job.provider_id != user.id:
        return _not_found(request, user)

    values = {key: getattr(job, key) for key in JOB_FORM_FIELDS}
    values["skills"] = ", ".join(job.skills or [])
    values["has_timeline"] = job.has_timeline
    return request.app.state.templates.TemplateResponse("jobs/form.html", {
        "request": request,
        "user": user,
        "job": job,
        "values": values,
    })


@router.post("/{job_id}/edit")
async def update_job(job_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    data = await _job_form(request)
    result = jobs.update_job(db, job_id, user.id, data)
    return respond(request, result, f"/jobs/{job_id}", "Job updated.")


@router.post("/{job_id}/status")
async def change_status(job_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    form = await request.form()
    result = jobs.change_job_status(db, job_id, user.id, form.get("status", ""))
    return respond(request, result, f"/jobs/{job_id}", "Job status updated.")


@router.post("/{job_id}/delete")
def delete_job(job_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    result = jobs.delete_job(db, job_id, user.id)
    if result.success and not wants_json(request):
        # The job page is gone, so never bounce back to it
        flash(request, "Job deleted.")
        return RedirectResponse("/dashboard", status_code=303)
    return respond(request, result, f"/jobs/{job_id}", "Job deleted.")


@router.post("/{job_id}/save")
def toggle_save(job_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    result = saved_jobs.toggle_save_job(db, user.id, job_id)
    message = "Job saved." if result.data else "Job removed from saved."
    return respond(request, result, f"/jobs/{job_id}", message, payload={"saved": bool(result.data)})
