"""Notification routes — inbox, unread badge, read/delete actions."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from bitwork.services import notifications

from .dependencies import get_current_user, get_db, respond

router = APIRouter(prefix="/notifications")

INBOX_LIMIT = 50


@router.get("")
def inbox(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    only_unread = request.query_params.get("unread") == "1"
    return request.app.state.templates.TemplateResponse("notifications/list.html", {
        "request": request,
        "user": user,
        "notifications": notifications.get_notifications(
            db, user.id, limit=INBOX_LIMIT, only_unread=only_unread
        ),
        "unread_count": notifications.get_unread_count(db, user.id),
        "only_unread": only_unread,
    })


@router.get("/unread-count")
def unread_count(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return JSONResponse({"error": "not signed in"}, status_code=401)
    return JSONResponse({"count": notifications.get_unread_count(db, user.id)})


@router.post("/read-all")
def read_all(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    result = notifications.mark_all_as_read(db, user.id)
    return respond(
        request, result, "/notifications", "All notifications marked as read.",
        payload={"count": result.data or 0},
    )


@router.post("/{notification_id}/read")
def read_one(notification_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    result = notifications.mark_as_read(db, notification_id, user.id)
    return respond(request, result, "/notifications", "Notification marked as read.")


@router.post("/{notification_id}/delete")
def delete_one(notification_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    result = notifications.delete_notification(db, notification_id, user.id)
    return respond(request, result, "/notifications", "Notification deleted.")
