"""
Telegram-controlled Android builds on GitHub Actions.
"""

__version__ = "1.0.0"
