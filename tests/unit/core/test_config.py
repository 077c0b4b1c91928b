"""Tests for settings loading and validation."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from curation.core.config import AgentDefaults, Settings
from curation.domain.value_objects import AutonomyLevel


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CURATION_QUEUE_MAX_RETRY_COUNT", raising=False)
        settings = Settings(_env_file=None)

        assert settings.queue_max_retry_count == 3
        assert settings.review_timeout_hours == 72
        assert settings.temporal_task_queue == "curation-queue"
        assert settings.statistics_agent.autonomy_level is AutonomyLevel.REVIEW_REQUIRED
        assert settings.blogging_agent.confidence_threshold == 0.75

    def test_reads_prefixed_and_nested_environment(self, monkeypatch):
        monkeypatch.setenv("CURATION_QUEUE_MAX_RETRY_COUNT", "5")
        monkeypatch.setenv("CURATION_BLOGGING_AGENT__AUTONOMY_LEVEL", "SemiAutonomous")
        monkeypatch.setenv("CURATION_BLOGGING_AGENT__CONFIDENCE_THRESHOLD", "0.9")
        settings = Settings(_env_file=None)

        assert settings.queue_max_retry_count == 5
        assert settings.blogging_agent.autonomy_level is AutonomyLevel.SEMI_AUTONOMOUS
        assert settings.blogging_agent.confidence_threshold == 0.9

    def test_log_level_is_normalised(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"log_level": "loud"},
            {"queue_max_retry_count": -1},
            {"review_timeout_hours": 0},
            {"temporal_port": 70000},
        ],
    )
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None, **overrides)

    def test_agent_defaults_by_type(self):
        defaults = Settings(_env_file=None).agent_defaults()
        assert set(defaults) == {"Statistics", "Blogging"}

    def test_temporal_target(self):
        settings = Settings(_env_file=None, temporal_host="temporal", temporal_port=7234)
        assert settings.temporal_target == "temporal:7234"


class TestAgentDefaults:

    @pytest.mark.parametrize(
        "overrides",
        [{"confidence_threshold": 1.5}, {"temperature": -0.1}, {"max_tokens": 0}, {"model": " "}],
    )
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(PydanticValidationError):
            AgentDefaults(**overrides)
