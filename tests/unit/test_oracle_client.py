"""
Unit Tests for the Oracle Client

Uses a stand-in for the OpenAI SDK client; no network calls.
"""

from types import SimpleNamespace

import httpx
import openai
import pytest
import sys
import os

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "adaptive_interview_coach", "src"))

from adaptive_interview_coach.errors import OracleUnavailable
from adaptive_interview_coach.oracle_client import OpenAIOracle, OracleConfig, extract_text

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def completion(content):
    return SimpleNamespace(
        model="gpt-4o-mini",
        choices=[SimpleNamespace(message=SimpleNamespace(role="assistant", content=content))],
    )


class FakeCompletions:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def fake_client(*outcomes):
    completions = FakeCompletions(outcomes)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


@pytest.fixture
def config():
    return OracleConfig(api_key="sk-test", model="gpt-4o-mini", max_tokens=1500, max_retries=2)


class TestOpenAIOracle:

    @pytest.mark.asyncio
    async def test_complete_prepends_system_prompt(self, config):
        client, completions = fake_client(completion("  **Problem:** Two Sum  "))
        oracle = OpenAIOracle(config, client=client)

        text = await oracle.complete("You are an interviewer.", [{"role": "user", "content": "start"}], 800)

        assert text == "**Problem:** Two Sum"
        call = completions.calls[0]
        assert call["messages"][0] == {"role": "system", "content": "You are an interviewer."}
        assert call["messages"][1] == {"role": "user", "content": "start"}
        assert call["max_tokens"] == 800
        assert call["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_default_token_budget(self, config):
        client, completions = fake_client(completion("ok"))
        oracle = OpenAIOracle(config, client=client)

        await oracle.complete("sys", [], None)

        assert completions.calls[0]["max_tokens"] == 1500

    @pytest.mark.asyncio
    async def test_retries_connection_errors(self, config):
        client, completions = fake_client(
            openai.APIConnectionError(request=REQUEST),
            completion("recovered"),
        )
        oracle = OpenAIOracle(config, client=client)
        oracle.BACKOFF_SECONDS = (0.0,)

        assert await oracle.complete("sys", [], 100) == "recovered"
        assert len(completions.calls) == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, config):
        client, completions = fake_client(*[openai.APIConnectionError(request=REQUEST) for _ in range(3)])
        oracle = OpenAIOracle(config, client=client)
        oracle.BACKOFF_SECONDS = (0.0,)

        with pytest.raises(OracleUnavailable):
            await oracle.complete("sys", [], 100)
        assert len(completions.calls) == 3

    @pytest.mark.asyncio
    async def test_auth_error_is_not_retried(self, config):
        auth_error = openai.AuthenticationError(
            "Incorrect API key provided",
            response=httpx.Response(401, request=REQUEST),
            body=None,
        )
        client, completions = fake_client(auth_error)
        oracle = OpenAIOracle(config, client=client)

        with pytest.raises(OracleUnavailable, match="Incorrect API key"):
            await oracle.complete("sys", [], 100)
        assert len(completions.calls) == 1

    @pytest.mark.asyncio
    async def test_missing_text_returns_empty(self, config):
        client, _ = fake_client(completion(None))
        oracle = OpenAIOracle(config, client=client)

        assert await oracle.complete("sys", [], 100) == ""


class TestExtractText:

    def test_string_content(self):
        assert extract_text(completion("hello")) == "hello"

    def test_first_text_part_of_list_content(self):
        parts = [{"type": "image_url", "image_url": {}}, {"type": "text", "text": "question"}]

        assert extract_text(completion(parts)) == "question"

    def test_object_parts(self):
        parts = [SimpleNamespace(type="text", text="  ")]
        assert extract_text(completion(parts)) == ""

        parts.append(SimpleNamespace(type="text", text="answer"))
        assert extract_text(completion(parts)) == "answer"

    def test_skips_empty_choices(self):
        resp = SimpleNamespace(choices=[
            SimpleNamespace(message=SimpleNamespace(content="")),
            SimpleNamespace(message=SimpleNamespace(content="second choice")),
        ])

        assert extract_text(resp) == "second choice"

    @pytest.mark.parametrize("resp", [None, SimpleNamespace(), SimpleNamespace(choices=[]),
                                      SimpleNamespace(choices=[SimpleNamespace(message=None)])])
    def test_degenerate_completions(self, resp):
        assert extract_text(resp) == ""


class TestOracleConfig:

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("OPENAI_MODEL", "gpt-4o")
        monkeypatch.setenv("COACH_MAX_TOKENS", "900")
        monkeypatch.delenv("COACH_TEMPERATURE", raising=False)

        config = OracleConfig.from_env()

        assert config.api_key == "sk-env"
        assert config.model == "gpt-4o"
        assert config.max_tokens == 900
        assert config.temperature == 0.7

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            OracleConfig.from_env()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
