"""Scoring engine and pin physics for ten-pin bowling."""

from . import bowling, pins

__all__ = [
    "bowling",
    "pins",
]
