"""Prompt templates for the portfolio assistant."""

from __future__ import annotations

import logging
from pathlib import Path

from .models import FoliochatConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are {assistant}, {owner}'s friendly AI assistant on their portfolio website. \
Your ONLY purpose is to help visitors learn about {owner}, their projects, skills, \
experience, and background.

IMPORTANT TOPIC CONSTRAINTS:
1. ONLY discuss {owner}'s projects, skills, background, and portfolio content
2. DO NOT answer questions about unrelated topics like:
   - Academic subjects (math, science, history, etc.)
   - General knowledge questions
   - Current events
   - Technical tutorials unrelated to {owner}'s work
   - Personal advice
   - Definitions of terms/concepts unrelated to {owner}

If a visitor asks about something unrelated, politely redirect them by saying you're \
specialized in sharing information about {owner}'s work, and suggest they ask about \
their projects, skills, or experience instead.

COMMUNICATION STYLE:
- Use simple, everyday language (no tech jargon)
- Be warm and engaging
- Focus on what {owner} is creating and why it matters
- Keep responses concise and friendly
- Use markdown formatting for better readability (headings, bold, lists, etc.)
{profile}
REPOSITORY INFORMATION:
{digest}"""

GREETING = (
    "Hi there! 👋 I'm {assistant}, your guide to {owner}'s portfolio. I can tell you all "
    "about {owner}'s skills, projects, experience, and more. What would you like to know "
    "about their work?"
)

OFF_TOPIC_REMINDER = (
    "Remember: You MUST ONLY answer questions about {owner} and their work. The previous "
    "question appears to be off-topic. Politely explain that you can only discuss "
    "{owner}'s projects, skills, and experience."
)

LISTING_INSTRUCTION = (
    "The user is asking for a list of {owner}'s repositories/projects. Please provide a "
    "well-formatted list of projects with brief descriptions using markdown formatting. "
    "Use the repository information I provided earlier."
)

PROJECT_CONTEXT = (
    'The user is asking about the project "{name}". Here\'s detailed information about '
    "this project that you should use in your response:\n\n{excerpt}\n\n"
    "Make sure to format your response nicely using markdown."
)


def load_profile(config: FoliochatConfig) -> str:
    """Owner profile text from ``config.profile_path``.

    Empty if unset or unreadable.
    """
    if not config.profile_path:
        return ""
    path = Path(config.profile_path).expanduser()
    try:
        return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read profile %s, continuing without it: %s", path, exc)
        return ""


def build_system_prompt(config: FoliochatConfig, digest_text: str, profile: str = "") -> str:
    block = f"\n---\n{profile}\n---\n" if profile else ""
    return SYSTEM_PROMPT.format(
        assistant=config.assistant_name,
        owner=config.owner_name,
        profile=block,
        digest=digest_text,
    )


def build_greeting(config: FoliochatConfig) -> str:
    return GREETING.format(assistant=config.assistant_name, owner=config.owner_name)
