"""Tests for dashboard statistics."""

from bitwork.services import applications, jobs, stats

from conftest import make_job, make_profile


class TestProviderStats:
    def test_counts(self, db, provider):
        first = make_job(db, provider.id, title="First open job")
        second = make_job(db, provider.id, title="Second open job")
        closed = make_job(db, provider.id, title="Closed job here")
        for job, views in ((first, 10), (second, 20), (closed, 5)):
            job.view_count = views
        db.commit()

        seekers = [make_profile(db, f"seeker-{n}", "seeker") for n in range(4)]
        created = [
            applications.create_application(db, job.id, seeker.id).data
            for job, seeker in zip((first, first, second, second), seekers)
        ]
        jobs.close_job(db, closed.id, provider.id)
        applications.update_application_status(db, created[0].id, provider.id, "accepted")
        applications.update_application_status(db, created[1].id, provider.id, "rejected")
        applications.withdraw_application(db, created[2].id, seekers[2].id)

        result = stats.get_provider_stats(db, provider.id)
        assert result.to_dict() == {
            "active_jobs": 2,
            "total_applications": 4,
            "pending_applications": 1,
            "total_views": 35,
        }

    def test_no_jobs(self, db, provider):
        assert stats.get_provider_stats(db, provider.id).to_dict() == {
            "active_jobs": 0,
            "total_applications": 0,
            "pending_applications": 0,
            "total_views": 0,
        }


class TestSeekerStats:
    def test_counts(self, db, provider, seeker):
        posted = [make_job(db, provider.id, title=f"Posted job {n}") for n in range(4)]
        created = [applications.create_application(db, job.id, seeker.id).data for job in posted]
        applications.update_application_status(db, created[0].id, provider.id, "accepted")
        applications.update_application_status(db, created[1].id, provider.id, "rejected")
        applications.withdraw_application(db, created[2].id, seeker.id)

        result = stats.get_seeker_stats(db, seeker.id)
        assert result.total_applications == 4
        assert result.pending_applications == 1
        assert result.accepted_applications == 1
        assert result.rejected_applications == 1

    def test_empty(self, db, seeker):
        assert stats.get_seeker_stats(db, seeker.id).total_applications == 0
