"""
Worker module.
Contains the print worker and its handler registry.
"""

from printqueue.worker.main import Worker, run

__all__ = ["Worker", "run"]
