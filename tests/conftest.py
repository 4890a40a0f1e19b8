"""Shared test doubles."""

import pytest

from loopsafe.oracle.client import LLMResponse


class FakeClient:
    """Stands in for LLMClient; replays canned answers in order.

    An answer that is an exception instance is raised instead of returned.
    """

    def __init__(self, answers=None, configured=True):
        self.answers = list(answers or [])
        self.configured = configured
        self.prompts = []

    def complete(self, prompt, system_prompt=None, max_tokens=500, temperature=0.1):
        self.prompts.append(prompt)
        if not self.answers:
            raise ValueError("FakeClient ran out of answers")
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return LLMResponse(content=answer, model="fake")


@pytest.fixture
def fake_client():
    return FakeClient
