"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from giftbook.app.api.v1.endpoints import ledger, statistics, template

router = APIRouter()

# Ledger entries and batch upload
router.include_router(ledger.router)

# Aggregation views
router.include_router(statistics.router)

# Upload template
router.include_router(template.router)
