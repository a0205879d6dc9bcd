"""
Moderation: admin dashboard, blocking and user removal.
"""

from unishare.engines.moderation.dashboard_service import DashboardService, DashboardStats
from unishare.engines.moderation.moderation_service import ModerationService

__all__ = [
    "DashboardService",
    "DashboardStats",
    "ModerationService",
]
