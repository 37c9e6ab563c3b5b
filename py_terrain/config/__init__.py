"""
Configuration: settings, splat policy presets and logging setup.
"""

from .config import Settings, settings
from .splat_policies import POLICIES, get_policy, list_policies
from .log_setup import configure_logging

__all__ = ['Settings', 'settings', 'POLICIES', 'get_policy', 'list_policies', 'configure_logging']
