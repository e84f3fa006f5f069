"""Automated opponents and offline bot-versus-bot simulation."""

from .bots import WeightedRandomStrategy, always_fold_strategy, baseline_strategy

__all__ = ["WeightedRandomStrategy", "always_fold_strategy", "baseline_strategy"]
