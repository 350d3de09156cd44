import json
from typing import Any, Callable, List, Optional, Union

import pytest

from flipforge.config import Settings, build_settings


class FakeOracle:
    """Oracle stub that replays canned bodies and records every prompt."""

    def __init__(self, responses: Optional[List[Union[str, Exception, Callable[[str], str]]]] = None) -> None:
        self.responses = list(responses or [])
        self.calls: List[dict] = []

    def complete(self, system_prompt: str, user_prompt: str, max_tokens: Optional[int] = None) -> str:
        self.calls.append({"system": system_prompt, "user": user_prompt, "max_tokens": max_tokens})
        response = self.responses.pop(0) if self.responses else "[]"
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(user_prompt)
        return response


def prompt_domains(user_prompt: str) -> List[str]:
    """Domains listed under the prompt's DOMAINS TO SCORE section."""
    section = user_prompt.split("DOMAINS TO SCORE:\n", 1)[1]
    return [line.split(" (template:")[0] for line in section.splitlines() if line.strip()]


def echo_scores(score_for: Callable[[str], float]) -> Callable[[str], str]:
    """Build a response that scores every domain found in the prompt."""

    def respond(user_prompt: str) -> str:
        items = []
        for domain in prompt_domains(user_prompt):
            score = score_for(domain)
            bucket = "FAST-FLIP" if score >= 7 else "HOLD" if score >= 4 else "PASS"
            items.append({"domain": domain, "score": score, "bucket": bucket, "reason": "ok", "use_case": "fintech"})
        return json.dumps(items)

    return respond


@pytest.fixture
def settings() -> Settings:
    return build_settings({}, env={"OPENAI_API_KEY": "test-key"})


@pytest.fixture
def fake_oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def trust_job() -> dict:
    return {
        "packs": {"A": ["trust", "secure"], "B": ["flow", "lend"]},
        "templates": ["A+B"],
        "constraints": {"maxLen": 12, "noHyphens": True, "noNumbers": True},
    }


def scored_item(domain: str, score: Any, bucket: str = "HOLD", **extra: Any) -> dict:
    item = {"domain": domain, "score": score, "bucket": bucket, "reason": "r", "use_case": "u"}
    item.update(extra)
    return item
