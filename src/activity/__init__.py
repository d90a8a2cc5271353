"""
Activity Log Module

Audit trail of logins and admin changes:

- service.py: ActivityLogService, record / list / purge entries
- router.py: admin endpoints under /api/logs
- schemas.py: activity types and response models
"""

from .router import router
from .service import ActivityLogService
from .schemas import ActivityType

__all__ = ["router", "ActivityLogService", "ActivityType"]
