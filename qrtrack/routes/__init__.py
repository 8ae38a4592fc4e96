from .redirect import redirect_bp  # noqa: F401
from .tracking_api import tracking_api_bp, health_bp  # noqa: F401
