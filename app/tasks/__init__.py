"""
Background scheduling module.

Provides the periodic escalation sweep.
"""

from app.tasks.scheduler import (
    scheduler,
    setup_scheduler,
    shutdown_scheduler,
    get_job_status,
    escalation_sweep_job
)

__all__ = [
    "scheduler",
    "setup_scheduler",
    "shutdown_scheduler",
    "get_job_status",
    "escalation_sweep_job"
]
