"""
Domain services for the timesheet engine.
This module exports the workflow, policy and statistics services.
"""

from .access_policy import Role, Capability, ROLE_CAPABILITIES, can, can_view, scope_filter
from .transition_validator import TransitionValidator, TransitionDecision, LEGAL_EDGES
from .batch_transition_service import BatchTransitionService, BatchResult, BatchFailure
from .statistics_service import StatisticsService, TimeEntryStats, Timesheet, UserHours

__all__ = [
    "Role",
    "Capability",
    "ROLE_CAPABILITIES",
    "can",
    "can_view",
    "scope_filter",
    "TransitionValidator",
    "TransitionDecision",
    "LEGAL_EDGES",
    "BatchTransitionService",
    "BatchResult",
    "BatchFailure",
    "StatisticsService",
    "TimeEntryStats",
    "Timesheet",
    "UserHours",
]
