"""Application lifecycle.

An application starts ``pending`` and moves exactly once:

    pending -> accepted    (job's provider)
    pending -> rejected    (job's provider)
    pending -> withdrawn   (the applying seeker)

accepted, rejected and withdrawn are terminal. Every transition is a
conditional update on ``status = 'pending'`` so a stale request can never
overwrite a decision that landed first.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bitwork.models import Application, Job, Profile
from bitwork.models.base import utcnow
from bitwork.utils.text_processing import clean_text, parse_amount

from . import revalidate
from .base import ActionResult, action
from .errors import (
    DuplicateApplicationError,
    InvalidTransitionError,
    JobClosedError,
    NotFoundError,
    SelfApplicationError,
    UnauthorizedError,
    ValidationError,
)
from .jobs import ProfileSummary
from .notifications import notify

logger = logging.getLogger("bitwork.applications")

PROVIDER_DECISIONS = ("accepted", "rejected")


@dataclass
class ApplicationWithDetails:
    application: Application
    job: Job
    seeker: Optional[ProfileSummary] = None


def _parse_details(details: Mapping[str, Any]) -> dict[str, Any]:
    try:
        proposed_rate = parse_amount(details.get("proposed_rate"), "Proposed rate")
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    return {
        "cover_letter": clean_text(details.get("cover_letter")),
        "proposed_rate": proposed_rate,
        "availability": clean_text(details.get("availability")),
    }


def _transition(db: Session, application: Application, target: str) -> None:
    """Move a pending application to ``target`` or fail with the status it actually has."""
    result = db.execute(
        update(Application)
        .where(Application.id == application.id, Application.status == "pending")
        .values(status=target, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.refresh(application)
    if result.rowcount == 0:
        raise InvalidTransitionError(application.status, target)


@action("Failed to submit application")
def create_application(
    db: Session, job_id: str, seeker_id: str, details: Optional[Mapping[str, Any]] = None
) -> ActionResult:
    """Apply ``seeker_id`` to an open job and notify the job's provider."""
    job = db.get(Job, job_id)
    if job is None:
        raise NotFoundError("Job not found")
    if job.status != "open":
        raise JobClosedError()
    if job.provider_id == seeker_id:
        raise SelfApplicationError()
    if db.get(Profile, seeker_id) is None:
        raise NotFoundError("Profile not found")

    existing = db.scalar(
        select(Application.id).where(Application.job_id == job_id, Application.seeker_id == seeker_id)
    )
    if existing is not None:
        raise DuplicateApplicationError()

    application = Application(job_id=job_id, seeker_id=seeker_id, status="pending", **_parse_details(details or {}))
    db.add(application)
    try:
        db.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent submit; the unique constraint is authoritative
        raise DuplicateApplicationError() from exc

    notify(
        db,
        user_id=job.provider_id,
        type="application",
        title="New Application",
        message=f'Someone has applied to your job "{job.title}"',
        related_job_id=job.id,
        related_application_id=application.id,
    )

    logger.info("Application %s: seeker %s -> job %s", application.id, seeker_id, job_id)
    revalidate.schedule(db, "/home/applications", "/home/jobs")
    return ActionResult.ok(application)


@action("Failed to update application")
def update_application_status(
    db: Session, application_id: str, provider_id: str, status: str
) -> ActionResult:
    """Accept or reject a pending application; only the job's provider may decide."""
    application = db.get(Application, application_id)
    if application is None:
        raise NotFoundError("Application not found")

    job = db.get(Job, application.job_id)
    if job is None or job.provider_id != provider_id:
        raise UnauthorizedError()

    if status not in PROVIDER_DECISIONS:
        raise ValidationError("Status must be accepted or rejected")

    _transition(db, application, status)

    if status == "accepted":
        title = "Application Accepted"
        message = f'Your application for "{job.title}" has been accepted!'
    else:
        title = "Application Update"
        message = f'Your application for "{job.title}" was not selected.'
    notify(
        db,
        user_id=application.seeker_id,
        type="application",
        title=title,
        message=message,
        related_job_id=job.id,
        related_application_id=application.id,
    )

    logger.info("Application %s %s by %s", application_id, status, provider_id)
    revalidate.schedule(db, "/home/applications")
    return ActionResult.ok(application)


@action("Failed to withdraw application")
def withdraw_application(db: Session, application_id: str, seeker_id: str) -> ActionResult:
    application = db.get(Application, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    if application.seeker_id != seeker_id:
        raise UnauthorizedError()

    _transition(db, application, "withdrawn")

    logger.info("Application %s withdrawn", application_id)
    revalidate.schedule(db, "/home/applications")
    return ActionResult.ok(application)


def _status_rank():
    return case(
        (Application.status == "pending", 1),
        (Application.status == "accepted", 2),
        (Application.status == "rejected", 3),
        else_=4,
    )


def list_applications(db: Session, user_id: str, role: str) -> list[ApplicationWithDetails]:
    """Applications visible to ``user_id``.

    Seekers see their own, newest first. Providers see every application to
    their jobs with pending ones first, then accepted, rejected, the rest,
    newest first within each group.
    """
    if role == "seeker":
        rows = db.execute(
            select(Application, Job)
            .join(Job, Application.job_id == Job.id)
            .where(Application.seeker_id == user_id)
            .order_by(Application.created_at.desc())
        ).all()
        return [ApplicationWithDetails(application=app, job=job) for app, job in rows]

    if role == "provider":
        rows = db.execute(
            select(Application, Job, Profile)
            .join(Job, Application.job_id == Job.id)
            .outerjoin(Profile, Application.seeker_id == Profile.id)
            .where(Job.provider_id == user_id)
            .order_by(_status_rank(), Application.created_at.desc())
        ).all()
        return [
            ApplicationWithDetails(application=app, job=job, seeker=ProfileSummary.from_profile(seeker))
            for app, job, seeker in rows
        ]

    return []


def get_application_by_id(
    db: Session, application_id: str, user_id: str, role: str
) -> Optional[ApplicationWithDetails]:
    """The application if ``user_id`` is its seeker or the job's provider, else None.

    Not being allowed to see an application looks exactly like it not existing.
    """
    row = db.execute(
        select(Application, Job, Profile)
        .join(Job, Application.job_id == Job.id)
        .outerjoin(Profile, Application.seeker_id == Profile.id)
        .where(Application.id == application_id)
    ).first()
    if row is None:
        return None

    application, job, seeker = row
    if role == "seeker" and application.seeker_id != user_id:
        return None
    if role == "provider" and job.provider_id != user_id:
        return None
    if role not in ("seeker", "provider"):
        return None

    return ApplicationWithDetails(application=application, job=job, seeker=ProfileSummary.from_profile(seeker))


def has_applied(db: Session, seeker_id: str, job_id: str) -> bool:
    return db.scalar(
        select(Application.id).where(Application.seeker_id == seeker_id, Application.job_id == job_id)
    ) is not None
