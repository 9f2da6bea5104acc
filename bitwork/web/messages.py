"""Direct message routes."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from bitwork.services import messages, profiles

from .dependencies import get_current_user, get_db, respond

router = APIRouter(prefix="/messages")


@router.get("/{other_id}")
def conversation(other_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    other = profiles.get_profile(db, other_id)
    if other is None or other.id == user.id:
        return request.app.state.templates.TemplateResponse(
            "error.html",
            {"request": request, "user": user, "error": "Conversation not found."},
            status_code=404,
        )

    messages.mark_conversation_read(db, receiver_id=user.id, sender_id=other_id)
    return request.app.state.templates.TemplateResponse("messages/conversation.html", {
        "request": request,
        "user": user,
        "other": other,
        "messages": messages.get_conversation(db, user.id, other_id),
        "job_id": request.query_params.get("job_id", ""),
    })


@router.post("/{other_id}")
async def send(other_id: str, request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    if not user:
        return RedirectResponse("/", status_code=303)

    form = await request.form()
    result = messages.send_message(
        db,
        sender_id=user.id,
        receiver_id=other_id,
        content=form.get("content", ""),
        job_id=form.get("job_id") or None,
    )
    payload = {"id": result.data.id} if result.success else None
    return respond(
        request, result, f"/messages/{other_id}", "Message sent.",
        payload=payload, prefer_referer=False,
    )
