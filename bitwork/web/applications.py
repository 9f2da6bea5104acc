"""Application routes — apply, review, decide, withdraw."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from bitwork.services import applications

from .dependencies import get_current_user, get_db, respond

router = APIRouter()


@router.get("/applications")
def applications_list(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)
    if not user.role:
        return RedirectResponse("/profile", status_code=303)

    return request.app.state.templates.TemplateResponse("applications/list.html", {
        "request": request,
        "user": user,
        "applications": applications.list_applications(db, user.id, user.role),
    })


@router.get("/applications/{application_id}")
def application_detail(application_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    item = applications.get_application_by_id(db, application_id, user.id, user.role or "")
    if item is None:
        return request.app.state.templates.TemplateResponse(
            "error.html",
            {"request": request, "user": user, "error": "Application not found."},
            status_code=404,
        )

    return request.app.state.templates.TemplateResponse("applications/detail.html", {
        "request": request,
        "user": user,
        "item": item,
    })


@router.post("/jobs/{job_id}/apply")
async def apply(job_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    form = await request.form()
    details = {
        "cover_letter": form.get("cover_letter", ""),
        "proposed_rate": form.get("proposed_rate", ""),
        "availability": form.get("availability", ""),
    }
    result = applications.create_application(db, job_id, user.id, details)
    payload = {"id": result.data.id} if result.success else None
    return respond(request, result, f"/jobs/{job_id}", "Application submitted!", payload=payload)


@router.post("/applications/{application_id}/status")
async def decide(application_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    form = await request.form()
    status = form.get("status", "")
    result = applications.update_application_status(db, application_id, user.id, status)
    message = "Application accepted." if status == "accepted" else "Application rejected."
    return respond(request, result, "/applications", message)


@router.post("/applications/{application_id}/withdraw")
def withdraw(application_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    result = applications.withdraw_application(db, application_id, user.id)
    return respond(request, result, "/applications", "Application withdrawn.")
