"""Dashboard counters for providers and seekers.

Each counter is its own query; they share no snapshot.
"""

from dataclasses import asdict, dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bitwork.models import Application, Job


@dataclass
class ProviderStats:
    active_jobs: int = 0
    total_applications: int = 0
    pending_applications: int = 0
    total_views: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SeekerStats:
    total_applications: int = 0
    pending_applications: int = 0
    accepted_applications: int = 0
    rejected_applications: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _count_provider_applications(db: Session, provider_id: str, status: str | None = None) -> int:
    stmt = (
        select(func.count(Application.id))
        .join(Job, Application.job_id == Job.id)
        .where(Job.provider_id == provider_id)
    )
    if status:
        stmt = stmt.where(Application.status == status)
    return db.scalar(stmt) or 0


def _count_seeker_applications(db: Session, seeker_id: str, status: str | None = None) -> int:
    stmt = select(func.count(Application.id)).where(Application.seeker_id == seeker_id)
    if status:
        stmt = stmt.where(Application.status == status)
    return db.scalar(stmt) or 0


def get_provider_stats(db: Session, provider_id: str) -> ProviderStats:
    active_jobs = db.scalar(
        select(func.count(Job.id)).where(Job.provider_id == provider_id, Job.status == "open")
    ) or 0
    total_views = db.scalar(
        select(func.sum(Job.view_count)).where(Job.provider_id == provider_id)
    ) or 0

    return ProviderStats(
        active_jobs=active_jobs,
        total_applications=_count_provider_applications(db, provider_id),
        pending_applications=_count_provider_applications(db, provider_id, "pending"),
        total_views=int(total_views),
    )


def get_seeker_stats(db: Session, seeker_id: str) -> SeekerStats:
    return SeekerStats(
        total_applications=_count_seeker_applications(db, seeker_id),
        pending_applications=_count_seeker_applications(db, seeker_id, "pending"),
        accepted_applications=_count_seeker_applications(db, seeker_id, "accepted"),
        rejected_applications=_count_seeker_applications(db, seeker_id, "rejected"),
    )
