"""Scheduled jobs module."""

from backup_agent.jobs.scheduler import run_forever, setup_scheduler, shutdown_scheduler

__all__ = ["run_forever", "setup_scheduler", "shutdown_scheduler"]
