from __future__ import annotations

import logging

from assistant.upstream import UpstreamChatClient
from config.settings import Settings


logger = logging.getLogger("luminary.advisor")

REVIEW_FALLBACK = "Your message looks good to go!"

SUBJECT_PROMPT = (
    "You write short, friendly email subject lines for a game studio's contact inbox. "
    "Reply with the subject line only: no quotes, at most 8 words."
)

REVIEW_PROMPT = (
    "You give quick, encouraging feedback on contact form messages before they are sent "
    "to a game studio. In one or two sentences, point out anything that might help the "
    "studio reply (missing details, unclear asks). Never tell the sender not to send it."
)


def subject_fallback(name: str) -> str:
    return f"New inquiry from {name}"


def _clean(text: str) -> str:
    return text.strip().strip('"').strip("'").strip()


class ContactAdvisor:
    """Optional model-written enrichments for contact submissions.

    Both calls are advisory: any failure is logged and replaced by a fixed
    fallback so the contact flow itself never fails because of them.
    """

    def __init__(self, upstream: UpstreamChatClient, settings: Settings) -> None:
        self.upstream = upstream
        self.settings = settings

    async def generate_subject(self, name: str, message: str) -> str:
        messages = [
            {"role": "system", "content": SUBJECT_PROMPT},
            {"role": "user", "content": f"From: {name}\n\n{message}"},
        ]
        try:
            subject = _clean(await self.upstream.complete(messages, self.settings.subject_max_tokens))
        except Exception as exc:
            logger.warning("Subject generation failed, using fallback: %s", exc)
            return subject_fallback(name)
        return subject or subject_fallback(name)

    async def review_message(self, name: str, email: str, message: str) -> str:
        messages = [
            {"role": "system", "content": REVIEW_PROMPT},
            {"role": "user", "content": f"Name: {name}\nEmail: {email}\n\n{message}"},
        ]
        try:
            feedback = (await self.upstream.complete(messages, self.settings.review_max_tokens)).strip()
        except Exception as exc:
            logger.warning("Message review failed, using fallback: %s", exc)
            return REVIEW_FALLBACK
        return feedback or REVIEW_FALLBACK
