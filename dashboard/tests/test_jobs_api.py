import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from dashboard.server import create_app
from job_tracker.config import TrackerConfig
from job_tracker.errors import StoreError
from job_tracker.store import MemoryJobStore, sample_jobs

NEW_JOB = {
    "title": "Backend Engineer",
    "company": "Acme",
    "applicationLink": "https://acme.test/jobs/1",
    "status": "Applied",
}


class TestJobsAPI(unittest.TestCase):
    def setUp(self):
        self.store = MemoryJobStore(sample_jobs())
        self.app = create_app(store=self.store, config=TrackerConfig())

    def test_create_then_fetch(self):
        with TestClient(self.app) as client:
            resp = client.post("/api/jobs", json=NEW_JOB)
            self.assertEqual(resp.status_code, 201)
            created = resp.json()["job"]
            self.assertTrue(created["id"])
            for key in ("title", "company", "applicationLink", "status"):
                self.assertEqual(created[key], NEW_JOB[key])
            self.assertEqual(created["createdAt"], created["updatedAt"])

            resp = client.get(f"/api/jobs/{created['id']}")
            self.assertEqual(resp.status_code, 200)
            self.assertEqual(resp.json(), {"success": True, "job": created})
            fetched = resp.json()["job"]
            for key in ("title", "company", "applicationLink", "status"):
                self.assertEqual(fetched[key], NEW_JOB[key])

    def test_create_rejects_invalid_status(self):
        with TestClient(self.app) as client:
            before = self.store.count()
            resp = client.post("/api/jobs", json=dict(NEW_JOB, status="Ghosted"))
            self.assertEqual(resp.status_code, 400)
            self.assertFalse(resp.json()["success"])
            self.assertIn("Invalid job status", resp.json()["error"])
            self.assertEqual(self.store.count(), before)

    def test_create_lists_missing_fields(self):
        with TestClient(self.app) as client:
            resp = client.post("/api/jobs", json={"title": "Role"})
            self.assertEqual(resp.status_code, 400)
            self.assertIn("applicationLink", resp.json()["error"])

    def test_malformed_json(self):
        with TestClient(self.app) as client:
            resp = client.post(
                "/api/jobs", content=b"{nope", headers={"Content-Type": "application/json"}
            )
            self.assertEqual(resp.status_code, 400)
            self.assertFalse(resp.json()["success"])

    def test_list_filters_and_sorts(self):
        with TestClient(self.app) as client:
            resp = client.get("/api/jobs")
            self.assertEqual(resp.status_code, 200)
            dates = [j["dateApplied"] for j in resp.json()["jobs"]]
            self.assertEqual(len(dates), 4)
            self.assertEqual(dates, sorted(dates, reverse=True))

            resp = client.get("/api/jobs", params={"status": "Offer"})
            self.assertEqual([j["status"] for j in resp.json()["jobs"]], ["Offer"])

            resp = client.get("/api/jobs", params={"search": "startup"})
            self.assertEqual(len(resp.json()["jobs"]), 1)

            resp = client.get("/api/jobs", params={"sort": "company", "order": "asc"})
            companies = [j["company"] for j in resp.json()["jobs"]]
            self.assertEqual(companies, sorted(companies, key=str.lower))

            self.assertEqual(client.get("/api/jobs", params={"status": "Nope"}).status_code, 400)
            self.assertEqual(client.get("/api/jobs", params={"sort": "salary"}).status_code, 400)
            self.assertEqual(client.get("/api/jobs", params={"order": "up"}).status_code, 400)

    def test_update_changes_status_and_keeps_identity(self):
        with TestClient(self.app) as client:
            job = client.post("/api/jobs", json=NEW_JOB).json()["job"]
            resp = client.put(f"/api/jobs/{job['id']}", json={"status": "Interviewing", "id": "other"})
            self.assertEqual(resp.status_code, 200)
            updated = resp.json()["job"]
            self.assertEqual(updated["id"], job["id"])
            self.assertEqual(updated["status"], "Interviewing")
            self.assertEqual(updated["createdAt"], job["createdAt"])
            self.assertEqual([c["status"] for c in updated["statusHistory"]], ["Applied", "Interviewing"])

            resp = client.put(f"/api/jobs/{job['id']}", json={"status": "interviewing"})
            self.assertEqual(resp.status_code, 400)

    def test_missing_job_is_404(self):
        with TestClient(self.app) as client:
            self.assertEqual(client.get("/api/jobs/missing").status_code, 404)
            self.assertEqual(client.put("/api/jobs/missing", json={"status": "Offer"}).status_code, 404)
            resp = client.delete("/api/jobs/missing")
            self.assertEqual(resp.status_code, 404)
            self.assertEqual(resp.json(), {"success": False, "error": "Job not found"})

    def test_delete(self):
        with TestClient(self.app) as client:
            job = client.post("/api/jobs", json=NEW_JOB).json()["job"]
            resp = client.delete(f"/api/jobs/{job['id']}")
            self.assertEqual(resp.status_code, 200)
            self.assertEqual(resp.json()["message"], "Job deleted successfully")
            self.assertEqual(client.get(f"/api/jobs/{job['id']}").status_code, 404)

    def test_export_csv(self):
        with TestClient(self.app) as client:
            resp = client.get("/api/export/jobs.csv", params={"status": "Rejected"})
            self.assertEqual(resp.status_code, 200)
            self.assertTrue(resp.headers["content-type"].startswith("text/csv"))
            self.assertIn("attachment", resp.headers["content-disposition"])
            lines = resp.text.splitlines()
            self.assertTrue(lines[0].startswith('"Job Title"'))
            self.assertEqual(len(lines), 2)

    def test_dashboard_data(self):
        with TestClient(self.app) as client:
            stats = client.get("/api/stats").json()["stats"]
            self.assertEqual(stats["total"], 4)

            analytics = client.get("/api/analytics", params={"range": "all"}).json()["analytics"]
            self.assertEqual(analytics["totalApplications"], 4)
            self.assertEqual(len(analytics["statusDistribution"]), 4)

            events = client.get("/api/timeline").json()["events"]
            self.assertTrue(events)
            self.assertEqual(events, client.get("/api/timeline").json()["events"])

            resp = client.get("/api/timeline", params={"status": "Offer"})
            self.assertTrue(all(e["status"] == "Offer" for e in resp.json()["events"]))

    def test_store_failure_is_500(self):
        with TestClient(self.app) as client:
            with patch.object(self.store, "list_jobs", side_effect=StoreError("disk full")):
                resp = client.get("/api/jobs")
            self.assertEqual(resp.status_code, 500)
            self.assertEqual(resp.json(), {"success": False, "error": "disk full"})

    def test_unexpected_failure_is_500(self):
        with TestClient(self.app, raise_server_exceptions=False) as client:
            with patch.object(self.store, "list_jobs", side_effect=RuntimeError("boom")):
                resp = client.get("/api/stats")
            self.assertEqual(resp.status_code, 500)
            self.assertEqual(resp.json()["error"], "Internal server error")

    def test_store_closed_on_shutdown(self):
        with TestClient(self.app):
            pass
        with self.assertRaises(StoreError):
            self.store.list_jobs()


if __name__ == "__main__":
    unittest.main()
