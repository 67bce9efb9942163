"""
Print Job Queue

A durable work queue for print jobs: producers submit PDF payloads, workers
claim them one at a time and report success or failure.
"""

__version__ = "1.0.0"
