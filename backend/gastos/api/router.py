"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from gastos.api.routes import members, groups, expenses, exchange

api_router = APIRouter()

# Include all route modules
api_router.include_router(members.router)
api_router.include_router(groups.router)
api_router.include_router(expenses.router)
api_router.include_router(exchange.router)
