from ojas_pulse.synthesis.base import ArticleSynthesizer
from ojas_pulse.synthesis.claude import (
    SYNTHESIS_SYSTEM_PROMPT,
    ClaudeArticleSynthesizer,
    build_article,
)

__all__ = [
    "ArticleSynthesizer",
    "ClaudeArticleSynthesizer",
    "SYNTHESIS_SYSTEM_PROMPT",
    "build_article",
]
