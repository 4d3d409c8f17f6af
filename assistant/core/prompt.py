from __future__ import annotations

"""System prompt for the studio assistant.

The studio context lives in a ``StudioProfile`` so each deployment (studio
name, roster, contacts) is configuration rather than code. Live game stats
are rendered fresh per request and never stored.
"""

from collections.abc import Mapping
from typing import Any, List, Optional

from pydantic import BaseModel, Field


STATS_PLACEHOLDER = "N/A"


class Game(BaseModel):
    title: str
    genre: str
    blurb: str
    universe_id: str = Field(..., description="Stable Roblox universe identifier")


class Contacts(BaseModel):
    general: str
    projects: str


class Testimonial(BaseModel):
    author: str
    role: str
    quote: str


class StudioProfile(BaseModel):
    assistant_name: str
    studio_name: str = Field(..., min_length=1)
    tagline: str = "a premium Roblox game development studio"
    location: str
    founder: str
    website: str
    motto: str
    specialty: str
    games: List[Game] = Field(default_factory=list)
    contacts: Contacts
    testimonial: Testimonial


DEFAULT_PROFILE = StudioProfile(
    assistant_name="Luminary AI",
    studio_name="Luminary Ventures",
    location="Seattle, WA",
    founder="essx (also known as Pavel)",
    website="https://luminary.spunnie.com",
    motto="Dream It. Build It. Launch It.",
    specialty="crafting captivating Roblox experiences that reach millions of players worldwide",
    games=[
        Game(
            title="The Highest Skydive Ever Obby",
            genre="Obby / Adventure",
            blurb="Take the ultimate leap and skydive through thrilling obstacle courses.",
            universe_id="6589241758",
        ),
        Game(
            title="McRonald's Restaurant",
            genre="Tycoon / Roleplay",
            blurb="Build and manage your own fast-food empire from the ground up.",
            universe_id="6169297188",
        ),
        Game(
            title="Shimmer Bay",
            genre="Roleplay / Social",
            blurb="Explore a vibrant coastal town full of secrets and stories.",
            universe_id="5914034409",
        ),
    ],
    contacts=Contacts(
        general="hello@luminaryventures.com",
        projects="projects@luminaryventures.com",
    ),
    testimonial=Testimonial(
        author="Joseph_D3v",
        role="developer",
        quote=(
            "Working with essx through Luminary has helped Shimmer Bay secure funding, "
            "and it felt like a collaboration, rather than a monopolization of creative "
            "decisions. Helped grow my project and we couldn't have done it without them."
        ),
    ),
)


TEMPLATE = """You are {assistant_name}, the friendly assistant for {studio_name} — {tagline} based in {location}.

ABOUT THE STUDIO:
• Founded and led by {founder}
• Website: {website}
• Motto: "{motto}"
• Specializes in {specialty}

GAMES (Roblox):
{games}

CONTACT:
• General inquiries: {general}
• Project proposals: {projects}

TESTIMONIAL:
• {testimonial_author} ({testimonial_role}): "{testimonial_quote}"
{stats}
GUIDELINES:
• Be concise, warm, and helpful. Use casual tone.
• If asked about pricing or specifics you don't know, direct them to {general}
• If asked something unrelated to {short_name} or Roblox development, you can still be helpful but gently steer back.
• You can use emojis sparingly to match the site's vibe.
• Keep responses SHORT — 1-3 sentences when possible, unless the user asks for detail."""


def _field(record: Mapping, key: str) -> str:
    value = record.get(key)
    if value is None or value == "":
        return STATS_PLACEHOLDER
    try:
        return str(value)
    except Exception:
        return STATS_PLACEHOLDER


def _stats_line(game: Any, data: Any) -> str:
    if isinstance(data, Mapping):
        return f"• {game}: {_field(data, 'visits')} visits, {_field(data, 'playing')}\n"
    if isinstance(data, (list, tuple)):
        return f"• {game}: {STATS_PLACEHOLDER} visits, {STATS_PLACEHOLDER}\n"
    try:
        return f"• {game}: {data}\n"
    except Exception:
        return f"• {game}: {STATS_PLACEHOLDER}\n"


def render_stats_block(live_stats: Any) -> str:
    if not isinstance(live_stats, Mapping):
        return ""
    block = "\n\nLIVE GAME STATS (updated every 10 seconds on the site):\n"
    for game, data in live_stats.items():
        block += _stats_line(game, data)
    return block


def build_system_prompt(
    live_stats: Optional[Any] = None, profile: StudioProfile = DEFAULT_PROFILE
) -> str:
    games = "\n".join(
        f"{idx}. {game.title} — {game.genre}. {game.blurb} Universe ID: {game.universe_id}"
        for idx, game in enumerate(profile.games, start=1)
    )
    return TEMPLATE.format(
        assistant_name=profile.assistant_name,
        studio_name=profile.studio_name,
        short_name=(profile.studio_name.split() or [profile.studio_name])[0],
        tagline=profile.tagline,
        location=profile.location,
        founder=profile.founder,
        website=profile.website,
        motto=profile.motto,
        specialty=profile.specialty,
        games=games,
        general=profile.contacts.general,
        projects=profile.contacts.projects,
        testimonial_author=profile.testimonial.author,
        testimonial_role=profile.testimonial.role,
        testimonial_quote=profile.testimonial.quote,
        stats=render_stats_block(live_stats),
    )
