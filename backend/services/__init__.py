"""
Calibration Lab Records - Backend Services
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-26): Asset testing history service
v1.1.0 (2026-10-12): Report service
v1.0.0 (2026-10-05): Initial services module
"""

from . import asset_store
from . import asset_allocator
from . import report_service
from . import asset_testing
