"""
Tests for configuration defaults.
"""

from pathlib import Path

from dotenv import dotenv_values

from cashdesk import config

ENV_EXAMPLE = Path(__file__).resolve().parents[1] / ".env.example"


class TestEnvExample:

    def test_session_refresh_default_matches(self):
        documented = dotenv_values(ENV_EXAMPLE)

        assert documented["SESSION_REFRESH_ENABLED"] == config.SESSION_REFRESH_ENABLED_DEFAULT

    def test_documents_every_session_setting(self):
        documented = dotenv_values(ENV_EXAMPLE)

        assert documented["SESSION_REFRESH_INTERVAL_SECONDS"] == "600"
        assert documented["SESSION_REFRESH_THRESHOLD_SECONDS"] == "300"
