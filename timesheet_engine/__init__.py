"""
Timesheet Lifecycle Engine.
Records time entries and moves them through the Draft/Submitted/Approved/Rejected workflow.
"""

__version__ = "1.0.0"
