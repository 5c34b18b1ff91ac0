"""
Application Constants
Defines constant values used throughout the application.

This module contains all application-wide constants including:
- Eco levels and their score ranges
- Product score tiers used by the dashboard distribution
- Score bands for synthetic (demo) products
"""

import math

# Eco Levels
# (name, min_score inclusive, max_score exclusive)
LEVELS = [
    ("Eco Rookie", 0, 500),
    ("Green Explorer", 500, 1000),
    ("Eco Guardian", 1000, 2000),
    ("Green Champion", 2000, 5000),
    ("Earth Hero", 5000, math.inf),
]

DEFAULT_LEVEL = LEVELS[0][0]

# Product score tiers (overall_score)
TIER_HIGH = "high"  # 70 and above
TIER_MEDIUM = "medium"  # 40 - 69
TIER_LOW = "low"  # below 40

TIER_HIGH_MIN = 70
TIER_MEDIUM_MIN = 40

# Synthetic product score bands (inclusive)
# Biased high so a demo scan always feels rewarding
SYNTHETIC_CARBON_FOOTPRINT = (70, 99)
SYNTHETIC_ETHICAL_SCORE = (80, 99)
SYNTHETIC_OVERALL_SCORE = (85, 99)

SYNTHETIC_PRODUCT_NAME = "Demo Eco Product"
SYNTHETIC_BARCODE_PREFIX = "DEMO"

# Where the client goes after a successful scan
POST_SCAN_ROUTE = "/dashboard"
