"""
EcoScan Rewards API

Scan products, earn EcoPoints, climb the leaderboard.
"""

__version__ = "1.0.0"
