"""
Maintenance Tasks

This module contains housekeeping jobs run by the application factory.
"""

from .cleanup_task import cleanup_orphaned_files

__all__ = ['cleanup_orphaned_files']
