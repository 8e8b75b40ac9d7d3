"""Prompt builders and tier tables for lesson generation.

- tier_guidance.py: per-tier constraint tables (sentence length, example
  density, discussion and dialogue ceilings, grammar points)
- section_prompts.py: prompt builders for the shared context and each section
"""

from lesson_pipeline.prompts.tier_guidance import TIER_GUIDANCE, TierGuidance, guidance_for

__all__ = ["TIER_GUIDANCE", "TierGuidance", "guidance_for"]
