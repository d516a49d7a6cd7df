"""
Translation Assistant - Tone-aware translation API
==================================================
This package provides a Flask-based JSON API for translating text into
English with a chosen tone (natural, gentle, cute, depressed, angry),
storing each user's translations, favorites, tags and access history.

Version: 1.0.0
"""

__version__ = "1.0.0"

from translation_assistant.app import create_app, run_server

__all__ = ["create_app", "run_server", "__version__"]
