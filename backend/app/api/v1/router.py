from fastapi import APIRouter
from backend.app.api.v1 import accounts, budgets, hubs, notifications, recurring

api_router = APIRouter()
api_router.include_router(hubs.router, prefix="/hubs", tags=["hubs"])
api_router.include_router(accounts.router, prefix="/accounts", tags=["accounts"])
api_router.include_router(recurring.router, prefix="/recurring-templates", tags=["recurring-templates"])
api_router.include_router(budgets.router, prefix="/budgets", tags=["budgets"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
