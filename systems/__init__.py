"""systems package – Frame-time scheduler and the insight panel."""

from .scheduler import CancelToken, ScheduledEvent, Scheduler
from .insight_panel import InsightPanel
