"""Practice topics offered on the topic selection screen."""

from __future__ import annotations

import random

RANDOM_TOPIC = "Random Challenge"

TOPICS: tuple[str, ...] = (
    "Limits & Continuity",
    "Derivatives & Applications",
    "Integrals & Applications",
    "Differential Equations",
    "Linear Algebra (Matrices/Determinants)",
    "Analytic Geometry",
    "Series & Sequences",
    RANDOM_TOPIC,
)

CONCRETE_TOPICS: tuple[str, ...] = tuple(t for t in TOPICS if t != RANDOM_TOPIC)


def resolve_topic(topic: str, rng: random.Random | None = None) -> str:
    """Turn the random-choice label into a concrete topic; pass others through."""
    if topic != RANDOM_TOPIC:
        return topic
    return (rng or random).choice(CONCRETE_TOPICS)
