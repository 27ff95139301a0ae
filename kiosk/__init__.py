"""
POS Scan Kiosk - camera/upload capture-and-decode front end.
"""

__version__ = "1.0.0"
