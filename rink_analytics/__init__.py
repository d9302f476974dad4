"""
Rink Analytics

Event-stream analytics engine for hockey play-by-play data: expected goals,
rolling momentum, inferred player units, and pairwise line chemistry.
"""

__version__ = "0.1.0"
__author__ = "NHL Analytics Team"
