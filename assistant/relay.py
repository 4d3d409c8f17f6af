from __future__ import annotations

"""Redacting relay between the upstream event stream and the browser.

Each upstream piece is decoded incrementally, rewritten by the redaction
rules in declaration order and forwarded as soon as it arrives. Rules run
on one piece at a time, so a match split exactly across two upstream pieces
is not rewritten.
"""

import codecs
import logging
import re
from typing import AsyncIterator, List, Sequence

from pydantic import BaseModel, Field, field_validator

from assistant.errors import RelayError


SENTINEL = "data: [DONE]\n\n"

logger = logging.getLogger("luminary.relay")


class RedactionRule(BaseModel):
    pattern: str = Field(..., min_length=1, description="Case-insensitive regular expression")
    replacement: str = Field("", description="Text substituted for every match")

    @field_validator("pattern")
    @classmethod
    def check_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid redaction pattern {value!r}: {exc}") from exc
        return value

    def apply(self, text: str) -> str:
        return re.sub(self.pattern, lambda _match: self.replacement, text, flags=re.IGNORECASE)


DEFAULT_RULES: List[RedactionRule] = [
    RedactionRule(pattern=r"\bChatGPT\b", replacement="Luminary AI"),
    RedactionRule(pattern=r"\bOpenAI\b", replacement="Luminary"),
    RedactionRule(pattern=r"\bgpt-[\w.\-]+", replacement="luminary-ai"),
]


def redact(text: str, rules: Sequence[RedactionRule]) -> str:
    # One pass per rule; later rules see earlier replacements.
    for rule in rules:
        text = rule.apply(text)
    return text


class RedactingRelay:
    def __init__(self, rules: Sequence[RedactionRule] = DEFAULT_RULES) -> None:
        self.rules = list(rules)

    async def stream(self, chunks: AsyncIterator[bytes]) -> AsyncIterator[str]:
        """Yield rewritten text for every upstream piece, then the sentinel.

        If anything fails once output has started, the stream ends without
        the sentinel so the client can tell the response is incomplete.
        The upstream iterator is closed on every exit path, including
        client disconnects.
        """
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        forwarded = 0
        try:
            async for raw in chunks:
                piece = redact(decoder.decode(raw), self.rules)
                if piece:
                    forwarded += 1
                    yield piece
            tail = redact(decoder.decode(b"", final=True), self.rules)
            if tail:
                yield tail
        except RelayError as exc:
            logger.warning("Relay stopped after %s pieces: %s", forwarded, exc)
            return
        except Exception:
            logger.exception("Relay failed after %s pieces", forwarded)
            return
        finally:
            aclose = getattr(chunks, "aclose", None)
            if aclose is not None:
                await aclose()
        yield SENTINEL
