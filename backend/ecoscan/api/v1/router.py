"""
API v1 Main Router
Aggregates all v1 API endpoints into a single router.

Structure:
- /products/* - Product catalog (read-only)
- /profiles/* - Profile bootstrap and profile page
- /scans/* - Manual scans and the interactive scan session WebSocket
- /dashboard, /leaderboard - Read models built by the ranking engine
- /rewards/*, /challenges - Reward catalog and redemption eligibility
"""

from fastapi import APIRouter

from ecoscan.api.v1 import dashboard, products, profiles, rewards, scans


# Create main v1 router
# This router will be included in main.py with prefix /api/v1
api_router = APIRouter()


# Endpoints: GET /products, GET /products/barcode/{barcode}
api_router.include_router(
    products.router,
    # prefix is already defined in products.router (/products)
    tags=["Products"],
)


# Endpoints: POST /profiles/me, GET /profiles/me
api_router.include_router(
    profiles.router,
    tags=["Profiles"],
)


# Endpoints: POST /scans, WS /scans/session
# The only endpoints that credit the reward ledger
api_router.include_router(
    scans.router,
    tags=["Scans"],
)


# Endpoints: GET /dashboard, GET /leaderboard
api_router.include_router(
    dashboard.router,
    tags=["Dashboard"],
)


# Endpoints: GET /rewards, GET /challenges, POST /rewards/{id}/redeem
api_router.include_router(
    rewards.router,
    tags=["Rewards"],
)
