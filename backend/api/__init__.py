"""
Calibration Lab Records - API Routers
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-26): Asset testing history router
v1.1.0 (2026-10-12): Assets and admin routers
v1.0.0 (2026-10-05): Initial reports and customers routers
"""
