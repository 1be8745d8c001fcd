"""Background workers for the invoice engine"""
from .overdue_sweeper import OverdueSweepWorker

__all__ = ["OverdueSweepWorker"]
