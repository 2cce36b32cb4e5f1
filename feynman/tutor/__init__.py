"""
Tutor Module - AI provider for problems, feedback and reports.

Components:
- provider: GeminiProvider and the TutorProvider interface
- prompts: Prompt templates and fixed fallback replies
"""

from .provider import (
    GeminiProvider,
    TutorProvider,
    attachment_to_part,
    build_tutor_contents,
)

__all__ = [
    "GeminiProvider",
    "TutorProvider",
    "attachment_to_part",
    "build_tutor_contents",
]
