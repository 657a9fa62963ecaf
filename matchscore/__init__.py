"""Match quality score engine.

Compares a player's match statistics and build decisions against the
historical champion/patch cohort and produces a bounded 0-100 score
with an explainable breakdown.
"""

__version__ = "1.0.0"
