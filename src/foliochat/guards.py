"""Keyword heuristics applied to user text before it is sent.

The off-topic check is advisory: the system prompt is what actually keeps
the model on topic, so anything not clearly off-topic counts as relevant.
"""

from __future__ import annotations

import re

OFF_TOPIC_TERMS = (
    "calculus", "math", "mathematics", "physics", "chemistry", "biology",
    "history", "geography", "politics", "religion", "philosophy",
    "what is", "define", "explain", "how to", "tutorial",
    "weather", "news", "sports", "stock", "invest", "recipe", "cook",
)

ON_TOPIC_TERMS = (
    "project", "portfolio", "skill", "work", "create", "build",
    "code", "develop", "program", "tech", "experience", "github", "repo", "interest",
)

PROJECT_QUERY_PATTERNS = tuple(
    re.compile(p)
    for p in (
        r"tell me about (the )?project",
        r"what is (the )?project",
        r"more (information|info|details) (on|about) (the )?project",
        r"describe (the )?project",
        r"what do you think about (the )?project",
        r"what is your favorite project",
        r"what do you like about (the )?project",
        r"why do you like (the )?project",
    )
)

_LISTING_TARGETS = ("repos", "repositories", "projects")


def is_relevant_question(text: str, owner_name: str | None = None) -> bool:
    """False only when *text* hits the denylist and misses the allowlist.

    *owner_name*, when given, counts as an allowlist term.
    """
    query = text.lower()
    if not any(term in query for term in OFF_TOPIC_TERMS):
        return True
    allowed = ON_TOPIC_TERMS + ((owner_name.lower(),) if owner_name else ())
    return any(term in query for term in allowed)


def is_project_info_query(text: str) -> bool:
    query = text.lower()
    return any(p.search(query) for p in PROJECT_QUERY_PATTERNS)


def is_listing_request(text: str) -> bool:
    query = text.lower()
    return "list" in query and any(target in query for target in _LISTING_TARGETS)
