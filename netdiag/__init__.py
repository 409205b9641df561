"""
netdiag: host network configuration discovery and diagnostics.
"""

__app_name__ = "Network Diagnostics"
__version__ = "0.1.0"
