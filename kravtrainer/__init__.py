"""
Krav Maga shadow fighting trainer.

Runs timed training sessions that announce a technique every few seconds,
drawn from a weighted, categorized technique pool.
"""

__version__ = "1.0.0"
