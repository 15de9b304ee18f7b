"""Version information for web-audit."""

__version__ = "0.1.0"
__version_info__ = tuple(int(i) for i in __version__.split("."))

__title__ = "web-audit"
__description__ = "Passive browser traffic auditor for bearer tokens and tenant identifiers"
__author__ = "Web Audit Team"
__license__ = "MIT"
