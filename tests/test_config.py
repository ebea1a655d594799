"""
Tests for environment-driven settings.
"""

import os
from unittest.mock import patch


class TestLoadSettings:

    def test_defaults(self):
        from brandpulse.config import DEFAULT_USER_AGENT, load_settings

        with patch.dict(os.environ, {}, clear=True):
            settings = load_settings()

        assert settings.openai_model == "gpt-4o-mini"
        assert settings.summary_model == "gpt-4o-mini"
        assert settings.reddit_user_agent == DEFAULT_USER_AGENT
        assert settings.topic_count == 5
        assert settings.search_timeframe == "month"
        assert settings.history_mode == "random"
        assert settings.subreddit_allowlist == []
        assert settings.demo_fallback is False
        assert settings.cors_origins == ["http://localhost:3000"]

    def test_environment_overrides(self):
        from brandpulse.config import load_settings

        env = {
            "OPENAI_MODEL": "gpt-4o",
            "TOPIC_COUNT": "7",
            "SEARCH_DELAY_SECONDS": "0.25",
            "HISTORY_MODE": "Smooth",
            "SUBREDDIT_ALLOWLIST": "cars, teslamotors ,",
            "DEMO_FALLBACK": "true",
            "CORS_ORIGINS": "http://a.test,http://b.test",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings()

        assert settings.openai_model == "gpt-4o"
        assert settings.summary_model == "gpt-4o"
        assert settings.topic_count == 7
        assert settings.search_delay_seconds == 0.25
        assert settings.history_mode == "smooth"
        assert settings.subreddit_allowlist == ["cars", "teslamotors"]
        assert settings.demo_fallback is True
        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    def test_summary_model_override(self):
        from brandpulse.config import load_settings

        with patch.dict(os.environ, {"OPENAI_SUMMARY_MODEL": "gpt-4o"}, clear=True):
            settings = load_settings()

        assert settings.openai_model == "gpt-4o-mini"
        assert settings.summary_model == "gpt-4o"

    def test_invalid_numbers_fall_back(self):
        from brandpulse.config import load_settings

        with patch.dict(os.environ, {"TOPIC_COUNT": "five", "REPLY_DELAY_SECONDS": "soon"}, clear=True):
            settings = load_settings()

        assert settings.topic_count == 5
        assert settings.reply_delay_seconds == 0.5

    def test_batch_sizes_clamped_to_one(self):
        """Zero or negative batch sizes are raised to 1 so batching still works."""
        from brandpulse.config import Settings, load_settings

        env = {"SENTIMENT_CONCURRENCY": "0", "RELEVANCE_BATCH_SIZE": "-3"}
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings()

        assert settings.sentiment_concurrency == 1
        assert settings.relevance_batch_size == 1
        assert Settings(sentiment_concurrency=0).sentiment_concurrency == 1


class TestLoadDotenv:

    def test_reads_file_without_overriding(self, tmp_path):
        from brandpulse.config import load_dotenv

        env_file = tmp_path / ".env"
        env_file.write_text("# comment\nTOPIC_COUNT=9\nOPENAI_MODEL = gpt-4o\nnot a pair\n")

        with patch.dict(os.environ, {"OPENAI_MODEL": "already-set"}, clear=True):
            load_dotenv(str(env_file))

            assert os.environ["TOPIC_COUNT"] == "9"
            assert os.environ["OPENAI_MODEL"] == "already-set"

    def test_missing_file_is_ignored(self, tmp_path):
        from brandpulse.config import load_dotenv

        with patch.dict(os.environ, {}, clear=True):
            load_dotenv(str(tmp_path / "missing.env"))

            assert "TOPIC_COUNT" not in os.environ
