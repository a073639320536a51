"""
Unit tests for environment-driven settings.
"""

import pytest
from pydantic import ValidationError

from adaptive_scheduler.exam import ExamConfig
from adaptive_scheduler.review import QualityMapper, SM2Config
from config import Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DATABASE_URL", "QUESTION_BANK_URL", "LOG_LEVEL", "QUALITY_MAPPING"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.database_url.startswith("postgresql://")
        assert settings.sm2_initial_ease == 2.5
        assert settings.sm2_minimum_ease == 1.3
        assert settings.adaptive_min_questions == 75
        assert settings.adaptive_max_questions == 145
        assert settings.standard_question_limit == 100
        assert settings.quality_mapping == "fixed"
        assert settings.write_retry_attempts == 3
        assert not settings.has_question_bank_configured()

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///scheduler.db")
        monkeypatch.setenv("QUESTION_BANK_URL", "http://bank.internal")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = Settings(_env_file=None)

        assert settings.database_url == "sqlite:///scheduler.db"
        assert settings.has_question_bank_configured()
        assert settings.log_level == "DEBUG"

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SM2_SECOND_INTERVAL=4\nQUALITY_MAPPING=timed\n", encoding="utf-8")

        settings = Settings(_env_file=env_file)

        assert settings.sm2_second_interval == 4
        assert settings.quality_mapping == "timed"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("correct_quality", 2),
            ("incorrect_quality", 3),
            ("exam_initial_difficulty", 4),
            ("write_retry_attempts", 0),
            ("quality_mapping", "random"),
            ("log_level", "TRACE"),
        ],
    )
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})

    def test_get_settings_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestFromSettings:
    def test_engine_configs(self):
        settings = Settings(
            _env_file=None,
            sm2_second_interval=5,
            adaptive_min_questions=10,
            quality_mapping="timed",
            expected_response_ms=4000,
        )

        assert SM2Config.from_settings(settings).second_interval == 5
        assert ExamConfig.from_settings(settings).adaptive_min_questions == 10

        mapper = QualityMapper.from_settings(settings)
        assert mapper.mode == "timed"
        assert mapper.quality_for(True, 1000) == 5
