"""
Local filesystem log source for offline report replays.
"""

from .adapter import LocalLogSource

__all__ = ["LocalLogSource"]
