"""Structured LLM calls for quests and news, with schema-correction retries.

Only pydantic validation failures are retried. The rejected fields are
described back to the model on the next attempt; provider errors and
timeouts go straight to the caller.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, TypeVar

from mirascope import llm
from pydantic import BaseModel, ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from fablerealm.logging_utils import log_error, log_llm


ModelT = TypeVar("ModelT", bound=BaseModel)
LLM_TIMEOUT_SECONDS = 30.0
PREVIEW_LIMIT = 80

RETRY_PREAMBLE = (
    "The scroll you returned could not be read: it does not match the required JSON schema.",
    "Answer again with JSON only, no prose and no code fences, fixing these issues:",
)


@dataclass(slots=True)
class RetryFeedback:
    """Validation issues from a rejected response, ready to append to a prompt."""

    issues: List[str] = field(default_factory=list)

    def as_prompt(self) -> str:
        return "\n".join([*RETRY_PREAMBLE, *(f"- {issue}" for issue in self.issues)])


def _preview(value: Any) -> str:
    # Inputs longer than PREVIEW_LIMIT characters are clipped with "..."
    text = "null" if value is None else repr(value)
    return text if len(text) <= PREVIEW_LIMIT else text[: PREVIEW_LIMIT - 3] + "..."


def describe_issue(err: Mapping[str, Any]) -> str:
    """One line per pydantic error: ``path: message [type=...] | received=...``."""
    # loc is a tuple such as ("target_value",) or ("goals", 0, "reward"); an
    # empty loc means the payload as a whole was rejected
    path = ".".join(str(part) for part in err.get("loc", ())) or "root"
    line = f"{path}: {err.get('msg', 'validation error')}"
    if err.get("type"):
        line += f" [type={err['type']}]"
    if "input" in err:
        line += f" | received={_preview(err['input'])}"
    return line


def build_retry_feedback(error: ValidationError) -> RetryFeedback:
    # include_url=False keeps pydantic doc links out of the prompt
    issues = [describe_issue(err) for err in error.errors(include_url=False)]
    # An error with no entries still needs one line for the model to act on
    return RetryFeedback(issues=issues or ["root: response did not match the expected schema"])


async def call_llm_with_retries(
    *,
    system_prompt: str,
    user_prompt: str,
    llm_provider: str,
    llm_model: str,
    response_model: type[ModelT],
    max_attempts: int = 3,
    timeout: float = LLM_TIMEOUT_SECONDS,
    feedback_builder: Callable[[ValidationError], RetryFeedback] = build_retry_feedback,
) -> ModelT:
    """Ask ``llm_provider`` for a ``response_model`` instance.

    The prompt is the system text followed by the user text. After a
    validation failure the feedback is appended and the call repeated, up to
    ``max_attempts`` calls in total, after which the last ValidationError is
    raised.
    """

    # The decorated function only returns the prompt text; mirascope sends it
    # and parses the reply into response_model, raising ValidationError on a
    # schema mismatch
    @llm.call(provider=llm_provider, model=llm_model, response_model=response_model)
    async def _invoke(prompt: str) -> str:
        return prompt

    # Blank sections are dropped so the joined prompt has no empty paragraphs
    base_sections = [part.strip() for part in (system_prompt, user_prompt) if part.strip()]
    feedback: RetryFeedback | None = None
    name = response_model.__name__

    # Only ValidationError is retried; provider errors and timeouts escape on
    # the first attempt. reraise=True surfaces the last ValidationError instead
    # of tenacity's RetryError
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(ValidationError),
        stop=stop_after_attempt(max_attempts),
        reraise=True,
    ):
        with attempt:
            number = attempt.retry_state.attempt_number
            sections = list(base_sections)
            # Feedback from the previous rejection rides along as a final section
            if feedback is not None:
                log_llm(f"Retry {number}/{max_attempts} for {name}; asking for a corrected scroll.")
                sections.append(feedback.as_prompt())

            try:
                return await asyncio.wait_for(_invoke("\n\n".join(sections)), timeout=timeout)
            except ValidationError as exc:
                # Kept for the next attempt; re-raising hands control back to tenacity
                feedback = feedback_builder(exc)
                log_error(f"{name} failed schema validation (attempt {number}/{max_attempts}).")
                for issue in feedback.issues:
                    print(f"    - {issue}")
                raise
            except asyncio.TimeoutError:
                log_error(f"LLM call for {name} timed out after {timeout:g}s.")
                raise

    # Unreachable with reraise=True; satisfies the declared return type
    raise RuntimeError("LLM retry loop exited without a result")
