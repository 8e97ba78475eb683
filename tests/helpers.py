"""Shared test helpers for threadwise tests."""

from __future__ import annotations

import json

from threadwise.core.prompts import CATEGORIZING_PROMPT, TASK_EXTRACTION_PROMPT
from threadwise.models.llm import LLMMessage, LLMResponse

USER_NAMES = {"U1": "Alice", "U2": "Bob", "U3": "Carol"}


def categorization_json(
    category: str = "technical_issue",
    tone: str = "serious",
    resolution: str = "unresolved",
) -> str:
    return json.dumps({"category": category, "tone": tone, "resolution": resolution})


def summary_json(status: str = "unresolved", summary: str = "Deploys fail on staging.") -> str:
    return json.dumps({"summary": summary, "status": status, "confidence": 0.9})


def tasks_json(count: int) -> str:
    return json.dumps(
        {
            "tasks": [
                {
                    "summary": f"Task {i + 1}",
                    "description": {
                        "type": "doc",
                        "version": 1,
                        "content": [
                            {
                                "type": "paragraph",
                                "content": [{"type": "text", "text": f"Do thing {i + 1}"}],
                            }
                        ],
                    },
                }
                for i in range(count)
            ]
        }
    )


class ScriptedLLM:
    """LLM stand-in that answers by system prompt.

    ``categorize`` and ``extract`` answer the categorizing and task prompts;
    ``summarize`` answers any other system prompt.
    """

    model_name = "scripted-model"

    def __init__(
        self,
        categorize: str | None = None,
        summarize: str | None = None,
        extract: str | None = None,
    ) -> None:
        self.categorize = categorize or categorization_json()
        self.summarize = summarize or summary_json()
        self.extract = extract or tasks_json(0)
        self.calls: list[list[LLMMessage]] = []

    def answered(self, prompt: str) -> int:
        return sum(1 for messages in self.calls if messages[0].content == prompt)

    @property
    def summary_calls(self) -> int:
        return sum(
            1
            for messages in self.calls
            if messages[0].content not in (CATEGORIZING_PROMPT, TASK_EXTRACTION_PROMPT)
        )

    async def complete(self, messages: list[LLMMessage]) -> LLMResponse:
        self.calls.append(list(messages))
        system = messages[0].content
        if system == CATEGORIZING_PROMPT:
            return LLMResponse(content=self.categorize, model=self.model_name)
        if system == TASK_EXTRACTION_PROMPT:
            return LLMResponse(content=self.extract, model=self.model_name)
        return LLMResponse(content=self.summarize, model=self.model_name)
