"""AI study tutor chat and personalised study plans."""

from typing import Literal

import structlog
from pydantic import BaseModel

from study_pulse.ai.base import AIServiceError, JSONCompletionClient

logger = structlog.get_logger()

MAX_HISTORY_MESSAGES = 20

TUTOR_SYSTEM_PROMPT = """\
You are an AI study tutor. Help students understand concepts, answer their \
questions and explain topics across a wide range of subjects. Be encouraging, \
clear and concise.

Respond ONLY with a JSON object:
{"response": "<your reply to the student's latest message>"}
"""

PLAN_SYSTEM_PROMPT = """\
You are an expert study coach. Create a personalised, realistic study plan \
from the student's goals, available time and subjects. Organise it by day or \
week, balance the subjects, and include short review sessions.

Respond ONLY with a JSON object:
{"studyPlan": "<the plan as readable markdown text>"}
"""


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    text: str


def _format_history(history: list[ChatMessage]) -> str:
    """Limit history to the last N messages to control token usage."""
    recent = history[-MAX_HISTORY_MESSAGES:]
    return "\n".join(
        f"{'User' if m.role == 'user' else 'Tutor'}: {m.text}"
        for m in recent
        if m.text
    )


class TutorChat(JSONCompletionClient):
    """Answers a student's message given the conversation so far."""

    async def reply(self, history: list[ChatMessage], message: str) -> str:
        """Get the tutor's answer.

        Raises:
            AIServiceError: If the model fails or returns an empty reply.
        """
        prompt = (
            f"Conversation history:\n{_format_history(history) or '(none)'}\n\n"
            f"User's latest message:\n{message}"
        )
        result = await self._complete_json(TUTOR_SYSTEM_PROMPT, prompt, temperature=0.5)
        response = result.get("response")
        if not isinstance(response, str) or not response.strip():
            raise AIServiceError("Tutor returned an empty response")
        logger.info("tutor_reply_generated", history_length=len(history))
        return response


class StudyPlanner(JSONCompletionClient):
    """Drafts a study plan from free-text goals and availability."""

    async def generate(self, study_goals: str, available_time: str, subjects: str) -> str:
        prompt = (
            f"Study goals: {study_goals}\n"
            f"Available time: {available_time}\n"
            f"Subjects: {subjects}"
        )
        result = await self._complete_json(PLAN_SYSTEM_PROMPT, prompt, temperature=0.6)
        plan = result.get("studyPlan")
        if not isinstance(plan, str) or not plan.strip():
            raise AIServiceError("The generated plan was empty")
        logger.info("study_plan_generated")
        return plan
