import unittest
from datetime import datetime, timedelta, timezone

from job_tracker.models import JobApplication, JobStatus, StatusChange, parse_create
from job_tracker.store import MemoryJobStore
from job_tracker.timeline import derive_events, offset_days

NOW = datetime(2025, 3, 31, 12, 0, tzinfo=timezone.utc)


def _at(y, m, d):
    return datetime(y, m, d, tzinfo=timezone.utc)


def _job(job_id, status, applied, history=()):
    return JobApplication(
        id=job_id,
        title=f"Role {job_id}",
        company="Acme",
        application_link="https://acme.test",
        status=status,
        date_applied=applied,
        created_at=applied,
        updated_at=applied,
        status_history=[StatusChange(status=s, changed_at=w) for s, w in history],
    )


class TestOffsets(unittest.TestCase):
    def test_stable_and_bounded(self):
        for job_id in ("a", "b", "job-123", "f3c1"):
            value = offset_days(job_id, "interview", 3, 14)
            self.assertEqual(value, offset_days(job_id, "interview", 3, 14))
            self.assertGreaterEqual(value, 3)
            self.assertLess(value, 17)


class TestDeriveEvents(unittest.TestCase):
    def test_recorded_history_drives_events(self):
        job = _job("r1", JobStatus.offer, _at(2025, 2, 1), [
            (JobStatus.applied, _at(2025, 2, 1)),
            (JobStatus.interviewing, _at(2025, 2, 6)),
            (JobStatus.offer, _at(2025, 2, 20)),
        ])
        events = derive_events([job], now=NOW)
        self.assertEqual([e.type for e in events], ["offer", "interview", "application"])
        self.assertEqual(events[0].date, _at(2025, 2, 20))
        self.assertEqual(events[1].date, _at(2025, 2, 6))
        self.assertFalse(any(e.synthetic for e in events))
        self.assertEqual(len({e.id for e in events}), 3)

    def test_placeholders_for_jobs_without_history(self):
        applied = _at(2025, 1, 1)
        jobs = [
            _job("i", JobStatus.interviewing, applied),
            _job("o", JobStatus.offer, applied),
            _job("x", JobStatus.rejected, applied),
            _job("p", JobStatus.applied, applied),
        ]
        events = derive_events(jobs, now=NOW)
        by_job = {}
        for e in events:
            by_job.setdefault(e.job_id, []).append(e)

        self.assertEqual([e.type for e in by_job["p"]], ["application"])

        [interview] = [e for e in by_job["i"] if e.type == "interview"]
        self.assertTrue(interview.synthetic)
        self.assertTrue(applied + timedelta(days=3) <= interview.date <= applied + timedelta(days=16))

        offer_events = {e.type: e for e in by_job["o"]}
        self.assertEqual(offer_events["interview"].title, "Interview completed")
        gap = offer_events["offer"].date - offer_events["interview"].date
        self.assertTrue(timedelta(days=1) <= gap <= timedelta(days=7))

        [rejection] = [e for e in by_job["x"] if e.type == "rejection"]
        self.assertTrue(applied + timedelta(days=7) <= rejection.date <= applied + timedelta(days=27))

    def test_job_created_past_applied_gets_follow_up(self):
        store = MemoryJobStore()
        for status in ("Interviewing", "Offer", "Rejected"):
            store.create_job(parse_create({
                "title": f"{status} role", "company": "Acme",
                "applicationLink": "https://acme.test", "status": status,
                "dateApplied": "2025-03-01",
            }))
        events = derive_events(store.list_jobs(), now=NOW)
        for job in store.list_jobs():
            types = [e.type for e in events if e.job_id == job.id]
            expected = {
                JobStatus.interviewing: "interview",
                JobStatus.offer: "offer",
                JobStatus.rejected: "rejection",
            }[job.status]
            self.assertIn(expected, types)
            self.assertIn("application", types)
            [follow_up] = [e for e in events if e.job_id == job.id and e.type == expected]
            self.assertFalse(follow_up.synthetic)
            self.assertEqual(follow_up.date, job.status_history[0].changed_at)

    def test_history_out_of_sync_uses_placeholders(self):
        job = _job("s", JobStatus.rejected, _at(2025, 1, 1), [(JobStatus.applied, _at(2025, 1, 1))])
        [rejection] = [e for e in derive_events([job], now=NOW) if e.type == "rejection"]
        self.assertTrue(rejection.synthetic)

    def test_repeatable(self):
        jobs = [_job("o", JobStatus.offer, _at(2025, 1, 1)), _job("x", JobStatus.rejected, _at(2025, 1, 5))]
        first = [e.to_response() for e in derive_events(jobs, now=NOW)]
        second = [e.to_response() for e in derive_events(jobs, now=NOW)]
        self.assertEqual(first, second)

    def test_newest_first(self):
        jobs = [
            _job("a", JobStatus.applied, _at(2025, 1, 1)),
            _job("b", JobStatus.rejected, _at(2025, 2, 1)),
            _job("c", JobStatus.interviewing, _at(2024, 12, 1)),
        ]
        dates = [e.date for e in derive_events(jobs, now=NOW)]
        self.assertEqual(dates, sorted(dates, reverse=True))

    def test_status_and_range_filters(self):
        jobs = [
            _job("a", JobStatus.applied, _at(2025, 3, 20)),
            _job("b", JobStatus.rejected, _at(2025, 3, 1)),
            _job("c", JobStatus.rejected, _at(2024, 6, 1)),
        ]
        rejected = derive_events(jobs, status="Rejected", now=NOW)
        self.assertEqual({e.job_id for e in rejected}, {"b", "c"})
        self.assertEqual(len(derive_events(jobs, status="all", now=NOW)), 5)

        recent = derive_events(jobs, date_range="30d", now=NOW)
        self.assertEqual({e.job_id for e in recent}, {"a"})

    def test_response_shape(self):
        job = _job("a", JobStatus.applied, _at(2025, 3, 20))
        [event] = derive_events([job], now=NOW)
        body = event.to_response()
        self.assertEqual(body["jobId"], "a")
        self.assertEqual(body["id"], "a-application")
        self.assertEqual(body["status"], "Applied")
        self.assertEqual(body["title"], "Applied to Role a")
        self.assertFalse(body["synthetic"])


if __name__ == "__main__":
    unittest.main()
