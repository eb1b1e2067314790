"""
API v1 router aggregation.
"""
from fastapi import APIRouter

from dispatchflow.api.v1.endpoints import orders, routes, dispatch, workflow, vehicles

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    orders.router,
    prefix="/orders",
    tags=["Orders"],
)

api_router.include_router(
    routes.router,
    prefix="/routes",
    tags=["Routes"],
)

api_router.include_router(
    dispatch.router,
    prefix="/dispatch",
    tags=["Dispatch"],
)

api_router.include_router(
    workflow.router,
    prefix="/workflow",
    tags=["Workflow"],
)

api_router.include_router(
    vehicles.router,
    prefix="/vehicles",
    tags=["Vehicles"],
)
