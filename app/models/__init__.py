from .worker import Worker
from .engagement_event import EngagementEvent
from .compliance_snapshot import DailyComplianceSnapshot
from .behavior_alert import BehaviorAlert

__all__ = [
    "Worker",
    "EngagementEvent",
    "DailyComplianceSnapshot",
    "BehaviorAlert",
]
