# pulse/api/__init__.py
from fastapi import Depends, FastAPI

from pulse.api.deps import enforce_rate_limit
from pulse.api.routers import admin, auth, bands, cart, contact, health, orders, watches

ROUTERS = [health, bands, watches, cart, orders, auth, contact, admin]


def register_routers(app: FastAPI) -> None:
    for module in ROUTERS:
        app.include_router(module.router, dependencies=[Depends(enforce_rate_limit)])
