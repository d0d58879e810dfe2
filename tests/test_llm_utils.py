"""Unit tests for the LLM retry helper."""

import asyncio

import pytest
from pydantic import BaseModel, ValidationError

from fablerealm.llm_utils import build_retry_feedback, call_llm_with_retries


class DummyModel(BaseModel):
    content: str


def _validation_error() -> ValidationError:
    try:
        DummyModel.model_validate({})
    except ValidationError as exc:
        return exc
    raise AssertionError("expected a validation error")


def _patch_llm(monkeypatch, fake_caller, expected_model=DummyModel):
    def fake_decorator(*, provider, model, response_model):
        assert response_model is expected_model

        def wrapper(fn):
            async def inner(prompt: str):
                return await fake_caller(prompt)

            return inner

        return wrapper

    monkeypatch.setattr("fablerealm.llm_utils.llm.call", fake_decorator)


@pytest.mark.asyncio
async def test_call_llm_with_retries_success(monkeypatch):
    recorded_prompts: list[str] = []

    async def fake_caller(prompt: str) -> DummyModel:
        recorded_prompts.append(prompt)
        return DummyModel(content="ok")

    _patch_llm(monkeypatch, fake_caller)

    result = await call_llm_with_retries(
        system_prompt="Royal context",
        user_prompt="What now?",
        llm_provider="openai",
        llm_model="gpt-5-nano",
        response_model=DummyModel,
    )

    assert result.content == "ok"
    assert recorded_prompts == ["Royal context\n\nWhat now?"]


@pytest.mark.asyncio
async def test_call_llm_with_retries_injects_feedback(monkeypatch):
    attempts: list[str] = []
    validation_error = _validation_error()

    async def fake_caller(prompt: str) -> DummyModel:
        attempts.append(prompt)
        if len(attempts) == 1:
            raise validation_error
        return DummyModel(content="fixed")

    _patch_llm(monkeypatch, fake_caller)

    result = await call_llm_with_retries(
        system_prompt="System",
        user_prompt="User",
        llm_provider="anthropic",
        llm_model="claude-haiku",
        response_model=DummyModel,
    )

    assert result.content == "fixed"
    assert len(attempts) == 2
    assert "does not match the required JSON schema" in attempts[1]
    assert attempts[1].startswith("System\n\nUser\n\n")
    assert "- content: Field required" in attempts[1]


@pytest.mark.asyncio
async def test_call_llm_with_retries_gives_up(monkeypatch):
    attempts: list[str] = []
    validation_error = _validation_error()

    async def fake_caller(prompt: str) -> DummyModel:
        attempts.append(prompt)
        raise validation_error

    _patch_llm(monkeypatch, fake_caller)

    with pytest.raises(ValidationError):
        await call_llm_with_retries(
            system_prompt="System",
            user_prompt="User",
            llm_provider="openai",
            llm_model="gpt-5-nano",
            response_model=DummyModel,
            max_attempts=2,
        )

    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_call_llm_with_retries_does_not_retry_timeouts(monkeypatch):
    attempts: list[str] = []

    async def fake_caller(prompt: str) -> DummyModel:
        attempts.append(prompt)
        await asyncio.sleep(1)
        return DummyModel(content="late")

    _patch_llm(monkeypatch, fake_caller)

    with pytest.raises(asyncio.TimeoutError):
        await call_llm_with_retries(
            system_prompt="System",
            user_prompt="User",
            llm_provider="openai",
            llm_model="gpt-5-nano",
            response_model=DummyModel,
            timeout=0.01,
        )

    assert len(attempts) == 1


def test_retry_feedback_lists_issues():
    feedback = build_retry_feedback(_validation_error())

    assert feedback.issues
    assert feedback.issues[0].startswith("content: Field required")
    assert "[type=missing]" in feedback.issues[0]
    assert "| received={}" in feedback.issues[0]
    assert feedback.as_prompt().endswith(f"- {feedback.issues[-1]}")
