import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from job_tracker.config import AIConfig, load_config

CLEAN_ENV = {"JOB_TRACKER_CONFIG": "", "JOB_TRACKER_DB": "", "JOB_TRACKER_PORT": ""}


class TestLoadConfig(unittest.TestCase):
    def test_defaults(self):
        with patch.dict(os.environ, CLEAN_ENV):
            cfg = load_config()
        self.assertEqual(cfg.store.backend, "json")
        self.assertEqual(cfg.ai.model, "gpt-3.5-turbo")
        self.assertEqual(cfg.ai.max_tokens, 1200)
        self.assertEqual(cfg.server.port, 8898)

    def test_user_yaml_is_deep_merged(self):
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "tracker.yaml"
            path.write_text("ai:\n  model: gpt-4o-mini\nstore:\n  backend: memory\n", encoding="utf-8")
            with patch.dict(os.environ, CLEAN_ENV):
                cfg = load_config(path)
        self.assertEqual(cfg.ai.model, "gpt-4o-mini")
        self.assertEqual(cfg.ai.temperature, 0.7)
        self.assertEqual(cfg.store.backend, "memory")

    def test_env_overrides(self):
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "tracker.yaml"
            path.write_text("server:\n  port: 9000\n", encoding="utf-8")
            env = {"JOB_TRACKER_CONFIG": str(path), "JOB_TRACKER_DB": f"{td}/db.json", "JOB_TRACKER_PORT": "9100"}
            with patch.dict(os.environ, env):
                cfg = load_config()
        self.assertEqual(cfg.server.port, 9100)
        self.assertEqual(cfg.store.resolved_path(), Path(td) / "db.json")

    def test_missing_user_file_keeps_defaults(self):
        with patch.dict(os.environ, CLEAN_ENV):
            cfg = load_config(Path("/nonexistent/tracker.yaml"))
        self.assertEqual(cfg.server.port, 8898)

    def test_api_key_read_at_call_time(self):
        ai = AIConfig(api_key_env="JOB_TRACKER_CFG_KEY")
        with patch.dict(os.environ, {"JOB_TRACKER_CFG_KEY": " sk-1 "}):
            self.assertEqual(ai.api_key(), "sk-1")
        with patch.dict(os.environ, {"JOB_TRACKER_CFG_KEY": ""}):
            self.assertEqual(ai.api_key(), "")


if __name__ == "__main__":
    unittest.main()
