from __future__ import annotations

import html
import logging
from email.utils import formataddr, parseaddr
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, Field

from assistant.errors import DeliveryError
from config.settings import Settings


logger = logging.getLogger("luminary.mailer")


class ContactSubmission(BaseModel):
    name: str = Field(..., min_length=1, description="Sender's name")
    email: str = Field(..., min_length=1, description="Sender's reply-to address")
    message: str = Field(..., min_length=1, description="Message body")


class OutboundEmail(BaseModel):
    sender: str
    to: str
    reply_to: Optional[str] = None
    subject: str
    text: str
    html: str

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "from": self.sender,
            "to": [self.to],
            "subject": self.subject,
            "text": self.text,
            "html": self.html,
        }
        if self.reply_to:
            payload["reply_to"] = self.reply_to
        return payload


def sender_as(name: str, mail_from: str) -> str:
    """Keep the configured address but show the submitter's name."""
    _, address = parseaddr(mail_from)
    return formataddr((name, address or mail_from))


def _html_paragraphs(text: str) -> str:
    return html.escape(text).replace("\n", "<br>")


def render_inquiry(submission: ContactSubmission, subject: str, recipient: str, sender: str) -> OutboundEmail:
    text = (
        f"New contact form submission\n\n"
        f"Name: {submission.name}\n"
        f"Email: {submission.email}\n\n"
        f"{submission.message}\n"
    )
    body = (
        "<h2>New contact form submission</h2>"
        f"<p><strong>Name:</strong> {html.escape(submission.name)}<br>"
        f"<strong>Email:</strong> {html.escape(submission.email)}</p>"
        f"<p>{_html_paragraphs(submission.message)}</p>"
    )
    return OutboundEmail(
        sender=sender_as(submission.name, sender),
        to=recipient,
        reply_to=submission.email,
        subject=subject,
        text=text,
        html=body,
    )


def render_acknowledgment(submission: ContactSubmission, studio_name: str, reply_to: str, sender: str) -> OutboundEmail:
    text = (
        f"Hi {submission.name},\n\n"
        f"Thanks for reaching out to {studio_name}! We got your message and will get back to you soon.\n\n"
        f"Your message:\n{submission.message}\n"
    )
    body = (
        f"<p>Hi {html.escape(submission.name)},</p>"
        f"<p>Thanks for reaching out to {html.escape(studio_name)}! "
        "We got your message and will get back to you soon.</p>"
        f"<blockquote>{_html_paragraphs(submission.message)}</blockquote>"
    )
    return OutboundEmail(
        sender=sender,
        to=submission.email,
        reply_to=reply_to,
        subject=f"Thanks for contacting {studio_name}",
        text=text,
        html=body,
    )


class ContactMailer:
    """Delivers contact submissions through an HTTP email API."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings, studio_name: str = "Luminary Ventures") -> None:
        self.http = http
        self.settings = settings
        self.studio_name = studio_name

    async def _send(self, email: OutboundEmail) -> None:
        headers = {}
        if self.settings.mail_api_key:
            headers["Authorization"] = f"Bearer {self.settings.mail_api_key}"
        try:
            response = await self.http.post(self.settings.mail_api_url, json=email.to_payload(), headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise DeliveryError(f"Mail API call failed: {exc}") from exc

    async def deliver(self, submission: ContactSubmission, subject: str) -> None:
        """Send the inquiry to the studio, then a best-effort acknowledgment."""
        inquiry = render_inquiry(
            submission,
            subject,
            recipient=self.settings.contact_recipient,
            sender=self.settings.mail_from,
        )
        await self._send(inquiry)
        logger.info("Contact inquiry delivered: subject=%r", subject)

        ack = render_acknowledgment(
            submission,
            self.studio_name,
            reply_to=self.settings.contact_recipient,
            sender=self.settings.mail_from,
        )
        try:
            await self._send(ack)
        except DeliveryError as exc:
            logger.warning("Acknowledgment to submitter failed: %s", exc)
