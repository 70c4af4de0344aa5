from .rate_alerts import router as rate_alerts_router
from .admin import router as admin_router
