"""HTTP dashboard API for job_tracker."""
