"""
Settings synchronization layer.

Keeps a device-local settings bundle (folders, action buttons, trainings,
statistics, charts) in step with a single remote record per user.
"""

__version__ = "0.1.0"
