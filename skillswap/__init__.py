"""SkillSwap matching, query caching and notifications."""

__version__ = "1.0.0"
