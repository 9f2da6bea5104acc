"""Bookmarks: toggle a saved job and list a user's saved jobs."""

import logging

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bitwork.models import Job, Profile, SavedJob

from . import revalidate
from .base import ActionResult, action
from .errors import NotFoundError
from .jobs import JobWithProvider, ProfileSummary

logger = logging.getLogger("bitwork.saved_jobs")


@action("Failed to save job")
def toggle_save_job(db: Session, user_id: str, job_id: str) -> ActionResult:
    """Flip the saved state of (user, job). ``data`` is the resulting state.

    Deleting first and inserting only when nothing was deleted keeps the
    toggle correct when two requests race: the unique constraint decides.
    """
    removed = db.execute(
        delete(SavedJob)
        .where(SavedJob.user_id == user_id, SavedJob.job_id == job_id)
        .execution_options(synchronize_session=False)
    ).rowcount
    if removed:
        revalidate.schedule(db, "/home/saved")
        return ActionResult.ok(False)

    if db.get(Job, job_id) is None:
        raise NotFoundError("Job not found")
    if db.get(Profile, user_id) is None:
        raise NotFoundError("Profile not found")

    try:
        with db.begin_nested():
            db.add(SavedJob(user_id=user_id, job_id=job_id))
    except IntegrityError:
        # A concurrent toggle inserted the same pair first
        logger.info("Save of job %s by %s already present", job_id, user_id)

    revalidate.schedule(db, "/home/saved")
    return ActionResult.ok(True)


def is_job_saved(db: Session, user_id: str, job_id: str) -> bool:
    return db.scalar(
        select(SavedJob.id).where(SavedJob.user_id == user_id, SavedJob.job_id == job_id)
    ) is not None


def get_saved_jobs(db: Session, user_id: str) -> list[JobWithProvider]:
    """The user's bookmarked jobs, most recently saved first."""
    rows = db.execute(
        select(Job, Profile)
        .join(SavedJob, and_(SavedJob.job_id == Job.id, SavedJob.user_id == user_id))
        .outerjoin(Profile, Job.provider_id == Profile.id)
        .order_by(SavedJob.created_at.desc())
    ).all()
    return [
        JobWithProvider(job=job, provider=ProfileSummary.from_profile(provider), is_saved=True)
        for job, provider in rows
    ]
