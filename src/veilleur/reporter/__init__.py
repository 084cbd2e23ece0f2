"""
Logging utilities.
"""

from veilleur.reporter.system_reporter import SystemReporter

__all__ = ["SystemReporter"]
