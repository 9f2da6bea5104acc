"""Job lifecycle — create, edit, status changes, delete, views — and the job search."""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.orm import Session

from bitwork.models import JOB_STATUSES, Application, Job, Message, Notification, Profile, SavedJob
from bitwork.models.base import utcnow
from bitwork.utils.text_processing import clean_text, parse_amount, parse_bool, parse_skills

from . import revalidate
from .base import ActionResult, action
from .errors import InvalidTransitionError, NotFoundError, UnauthorizedError, ValidationError

logger = logging.getLogger("bitwork.jobs")

MIN_TITLE_LENGTH = 5
MIN_DESCRIPTION_LENGTH = 20
DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 100

TEXT_FIELDS = ("category", "state", "city", "duration")
AMOUNT_FIELDS = ("budget", "hourly_rate")
PROTECTED_FIELDS = ("id", "provider_id", "status", "view_count", "created_at", "updated_at")

JOB_TRANSITIONS = {
    "open": {"in_progress", "closed"},
    "in_progress": {"completed", "closed"},
    "closed": {"open"},
    "completed": set(),
}


@dataclass
class ProfileSummary:
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def from_profile(cls, profile: Optional[Profile]) -> Optional["ProfileSummary"]:
        if profile is None:
            return None
        return cls(full_name=profile.full_name, avatar_url=profile.avatar_url, location=profile.location)


@dataclass
class JobWithProvider:
    """A job joined with its provider's display fields and the viewer's saved state."""

    job: Job
    provider: Optional[ProfileSummary] = None
    is_saved: bool = False


@dataclass
class JobFilters:
    category: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    min_budget: Optional[int] = None
    max_budget: Optional[int] = None
    status: str = "open"
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_params(cls, params: Mapping[str, Any], limit: int = DEFAULT_PAGE_SIZE) -> "JobFilters":
        """Build filters from query-string values; unparseable numbers are ignored."""

        def _amount(key):
            try:
                return parse_amount(params.get(key), key)
            except ValueError:
                return None

        try:
            page = int(params.get("page") or 1)
        except (TypeError, ValueError):
            page = 1

        return cls(
            category=clean_text(params.get("category")),
            city=clean_text(params.get("city")),
            state=clean_text(params.get("state")),
            min_budget=_amount("min_budget"),
            max_budget=_amount("max_budget"),
            status=clean_text(params.get("status")) or "open",
            page=page,
            limit=limit,
        )


@dataclass
class JobPage:
    jobs: list[JobWithProvider] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    has_more: bool = False


def _job_paths(job_id: Optional[str] = None) -> tuple[str, ...]:
    paths = ("/home", "/home/jobs")
    if job_id:
        paths += (f"/home/jobs/{job_id}",)
    return paths


def _validate_title(value) -> str:
    title = clean_text(value) or ""
    if len(title) < MIN_TITLE_LENGTH:
        raise ValidationError(f"Title must be at least {MIN_TITLE_LENGTH} characters")
    return title


def _validate_description(value) -> str:
    description = clean_text(value) or ""
    if len(description) < MIN_DESCRIPTION_LENGTH:
        raise ValidationError(f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters")
    return description


def _parse_job_fields(data: Mapping[str, Any], partial: bool = False) -> dict[str, Any]:
    """Validate raw job input and return column values.

    With ``partial`` only keys present in ``data`` are returned.
    """
    protected = [key for key in PROTECTED_FIELDS if key in data]
    if partial and protected:
        raise ValidationError(f"Field cannot be changed: {protected[0]}")

    values: dict[str, Any] = {}

    if not partial or "title" in data:
        values["title"] = _validate_title(data.get("title"))
    if not partial or "description" in data:
        values["description"] = _validate_description(data.get("description"))

    for key in TEXT_FIELDS:
        if key in data:
            values[key] = clean_text(data[key])

    for key in AMOUNT_FIELDS:
        if key in data:
            try:
                values[key] = parse_amount(data[key], key.replace("_", " ").capitalize())
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc

    if "has_timeline" in data:
        values["has_timeline"] = parse_bool(data["has_timeline"])
    if "skills" in data:
        values["skills"] = parse_skills(data["skills"])

    return values


def _get_owned_job(db: Session, job_id: str, provider_id: str) -> Job:
    job = db.get(Job, job_id)
    if job is None:
        raise NotFoundError("Job not found")
    if job.provider_id != provider_id:
        raise UnauthorizedError()
    return job


@action("Failed to create job")
def create_job(db: Session, data: Mapping[str, Any], provider_id: str) -> ActionResult:
    """Post a new open job for ``provider_id``."""
    values = _parse_job_fields(data)

    if db.get(Profile, provider_id) is None:
        raise NotFoundError("Provider profile not found")

    values.setdefault("skills", [])
    job = Job(provider_id=provider_id, status="open", view_count=0, **values)
    db.add(job)
    db.flush()

    logger.info("Job %s created by %s: %s", job.id, provider_id, job.title)
    revalidate.schedule(db, *_job_paths())
    return ActionResult.ok(job)


@action("Failed to update job")
def update_job(db: Session, job_id: str, provider_id: str, patch: Mapping[str, Any]) -> ActionResult:
    job = _get_owned_job(db, job_id, provider_id)
    values = _parse_job_fields(patch, partial=True)

    for key, value in values.items():
        setattr(job, key, value)
    job.updated_at = utcnow()
    db.flush()

    revalidate.schedule(db, *_job_paths(job_id))
    return ActionResult.ok(job)


@action("Failed to update job status")
def change_job_status(db: Session, job_id: str, provider_id: str, new_status: str) -> ActionResult:
    """Move a job through open → in_progress → completed, or close/reopen it."""
    if new_status not in JOB_STATUSES:
        raise ValidationError(f"Unknown job status: {new_status}")

    job = _get_owned_job(db, job_id, provider_id)
    current = job.status
    if new_status not in JOB_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(current, new_status, entity="job")

    # Conditional on the status we checked so a concurrent change is not overwritten
    result = db.execute(
        update(Job)
        .where(Job.id == job_id, Job.status == current)
        .values(status=new_status, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.refresh(job)
    if result.rowcount == 0:
        raise InvalidTransitionError(current, new_status, entity="job")

    logger.info("Job %s: %s -> %s", job_id, current, new_status)
    revalidate.schedule(db, *_job_paths(job_id))
    return ActionResult.ok(job)


def close_job(db: Session, job_id: str, provider_id: str) -> ActionResult:
    """Soft delete: stop accepting applications but keep history."""
    return change_job_status(db, job_id, provider_id, "closed")


@action("Failed to delete job")
def delete_job(db: Session, job_id: str, provider_id: str) -> ActionResult:
    """Hard-delete a job together with its applications and bookmarks.

    Notifications and messages that pointed at the job or its applications
    are kept with the reference cleared.
    """
    _get_owned_job(db, job_id, provider_id)

    application_ids = select(Application.id).where(Application.job_id == job_id)
    db.execute(
        update(Notification)
        .where(Notification.related_application_id.in_(application_ids))
        .values(related_application_id=None)
        .execution_options(synchronize_session=False)
    )
    db.execute(
        update(Notification)
        .where(Notification.related_job_id == job_id)
        .values(related_job_id=None)
        .execution_options(synchronize_session=False)
    )
    db.execute(
        update(Message)
        .where(Message.job_id == job_id)
        .values(job_id=None)
        .execution_options(synchronize_session=False)
    )
    saved = db.execute(delete(SavedJob).where(SavedJob.job_id == job_id)).rowcount
    removed = db.execute(delete(Application).where(Application.job_id == job_id)).rowcount
    db.execute(delete(Job).where(Job.id == job_id))
    db.expire_all()

    logger.info(
        "Job %s deleted by %s (%d applications, %d bookmarks removed)",
        job_id, provider_id, removed or 0, saved or 0,
    )
    revalidate.schedule(db, *_job_paths(job_id), "/home/applications", "/home/saved")
    return ActionResult.ok()


@action("Failed to record view")
def record_view(db: Session, job_id: str) -> ActionResult:
    """Increment the job's view counter by one. Any viewer counts, including the owner."""
    result = db.execute(
        update(Job)
        .where(Job.id == job_id)
        .values(view_count=Job.view_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("Job not found")
    return ActionResult.ok()


def _saved_job_ids(db: Session, user_id: Optional[str], job_ids: list[str]) -> set[str]:
    if not user_id or not job_ids:
        return set()
    return set(
        db.scalars(
            select(SavedJob.job_id).where(SavedJob.user_id == user_id, SavedJob.job_id.in_(job_ids))
        )
    )


def get_job_by_id(db: Session, job_id: str, viewer_id: Optional[str] = None) -> Optional[JobWithProvider]:
    """Fetch a job for display. Every successful fetch counts as one view."""
    row = db.execute(
        select(Job, Profile)
        .outerjoin(Profile, Job.provider_id == Profile.id)
        .where(Job.id == job_id)
    ).first()
    if row is None:
        return None

    job, provider = row
    is_saved = bool(_saved_job_ids(db, viewer_id, [job.id]))
    record_view(db, job_id)
    db.refresh(job)

    return JobWithProvider(job=job, provider=ProfileSummary.from_profile(provider), is_saved=is_saved)


def list_jobs(db: Session, filters: Optional[JobFilters] = None, viewer_id: Optional[str] = None) -> JobPage:
    """One page of jobs matching ``filters``, newest first."""
    filters = filters or JobFilters()
    page = max(1, filters.page)
    limit = min(max(1, filters.limit), MAX_PAGE_SIZE)
    offset = (page - 1) * limit

    if filters.status not in JOB_STATUSES:
        return JobPage(page=page, limit=limit)

    conditions = [Job.status == filters.status]
    if filters.category:
        conditions.append(Job.category == filters.category)
    if filters.city:
        conditions.append(Job.city == filters.city)
    if filters.state:
        conditions.append(Job.state == filters.state)
    if filters.min_budget is not None:
        conditions.append(Job.budget >= filters.min_budget)
    if filters.max_budget is not None:
        conditions.append(Job.budget <= filters.max_budget)
    where = and_(*conditions)

    total = db.scalar(select(func.count(Job.id)).where(where)) or 0
    rows = db.execute(
        select(Job, Profile)
        .outerjoin(Profile, Job.provider_id == Profile.id)
        .where(where)
        .order_by(Job.created_at.desc(), Job.id)
        .limit(limit)
        .offset(offset)
    ).all()

    saved_ids = _saved_job_ids(db, viewer_id, [job.id for job, _ in rows])
    jobs = [
        JobWithProvider(job=job, provider=ProfileSummary.from_profile(provider), is_saved=job.id in saved_ids)
        for job, provider in rows
    ]

    return JobPage(
        jobs=jobs,
        total=total,
        page=page,
        limit=limit,
        has_more=offset + len(jobs) < total,
    )


def get_provider_jobs(db: Session, provider_id: str, status: Optional[str] = None) -> list[Job]:
    stmt = select(Job).where(Job.provider_id == provider_id)
    if status:
        stmt = stmt.where(Job.status == status)
    return list(db.scalars(stmt.order_by(Job.created_at.desc())))
