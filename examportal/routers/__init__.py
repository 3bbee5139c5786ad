# examportal/routers/__init__.py

from .attempts import router as attempts_router
from .catalog import router as catalog_router
from .stats import router as stats_router
from .users import router as users_router

routes = [
    users_router,
    catalog_router,
    attempts_router,
    stats_router,
]
