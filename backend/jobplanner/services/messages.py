"""
Daily Plan Messages - short motivational text for a user's plan

Two implementations behind one interface:
    - TemplateMessageGenerator: deterministic, always available. Picks one
      of five templates from a stable hash of (user id, plan date).
    - AIMessageGenerator: OpenAI chat completion returning JSON
      {"message": "..."}. Any failure (API error, bad JSON, empty text)
      delegates to the template generator. Never retried.

get_message_generator() selects the implementation from the
AI_MESSAGES_ENABLED feature flag and the configured OpenAI key.
"""

import hashlib
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from openai import AsyncOpenAI

from jobplanner.config import Settings, get_settings
from jobplanner.middleware.metrics import record_enrichment_failure
from jobplanner.schemas.plan import PlannedJob
from jobplanner.schemas.profile import UserProfile

logger = logging.getLogger(__name__)

MESSAGE_TEMPLATES = [
    "Great morning, {name}! Today's {count} opportunities are hand-picked for your skills. Let's make it count!",
    "{name}, you've got this! {high_count} high-priority matches are waiting for you today.",
    "Rise and shine, {name}! The job market has {count} opportunities that match your background today.",
    "Today is your day, {name}! These {count} jobs align with your skills and career goals.",
    "Good luck today, {name}! Remember: each application brings you closer to your next job.",
]

AI_MESSAGE_PROMPT = """Generate a short (1-2 sentence) motivational message for {name}, who is looking for work.

Today's plan includes {count} jobs with {high_count} high-priority opportunities.
Average match score: {avg_score}%.

Keep it encouraging and specific to job hunting.
Respond with JSON: {{"message": "your message here"}}"""


def _counts(jobs: Sequence[PlannedJob]) -> dict:
    high_count = sum(1 for job in jobs if job.priority == "high")
    avg_score = int(sum(job.match_score for job in jobs) / len(jobs) + 0.5) if jobs else 0
    return {"count": len(jobs), "high_count": high_count, "avg_score": avg_score}


class MessageGenerator(ABC):
    @abstractmethod
    async def generate(self, profile: UserProfile, jobs: Sequence[PlannedJob], plan_date: str) -> str:
        pass


class TemplateMessageGenerator(MessageGenerator):
    def template_index(self, user_id: str, plan_date: str) -> int:
        digest = hashlib.sha256(f"{user_id}:{plan_date}".encode()).hexdigest()
        return int(digest, 16) % len(MESSAGE_TEMPLATES)

    async def generate(self, profile: UserProfile, jobs: Sequence[PlannedJob], plan_date: str) -> str:
        template = MESSAGE_TEMPLATES[self.template_index(profile.id, plan_date)]
        return template.format(name=profile.name or "there", **_counts(jobs))


class AIMessageGenerator(MessageGenerator):
    """
    OpenAI-backed message generator with template fallback.

    Attributes:
        client: Async OpenAI client
        model: Chat model name
        fallback: Generator used whenever the AI call does not produce a message
    """

    def __init__(
        self,
        openai_client: Any,
        model: str = "gpt-4o-mini",
        fallback: Optional[MessageGenerator] = None,
    ):
        self.client = openai_client
        self.model = model
        self.fallback = fallback or TemplateMessageGenerator()

    async def generate(self, profile: UserProfile, jobs: Sequence[PlannedJob], plan_date: str) -> str:
        prompt = AI_MESSAGE_PROMPT.format(name=profile.name or "the user", **_counts(jobs))

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": "You are an encouraging job search coach. Return only valid JSON."},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.8,
                max_tokens=150,
                response_format={"type": "json_object"},
            )
            content = response.choices[0].message.content or ""
            message = json.loads(content).get("message")
            if isinstance(message, str) and message.strip():
                return message.strip()
            logger.warning("AI message response contained no message")

        except Exception as e:
            logger.warning(f"AI message generation failed, using template: {e}")

        record_enrichment_failure("ai_message")
        return await self.fallback.generate(profile, jobs, plan_date)


def get_message_generator(settings: Optional[Settings] = None) -> MessageGenerator:
    settings = settings or get_settings()
    if settings.ai_messages_enabled and settings.openai_api_key:
        return AIMessageGenerator(
            AsyncOpenAI(api_key=settings.openai_api_key),
            model=settings.openai_model,
        )
    return TemplateMessageGenerator()
