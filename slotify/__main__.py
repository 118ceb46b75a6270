"""
Entry point for ``python -m slotify``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
