"""
API Module
==========
Flask API routes and blueprints.
"""
from translation_assistant.api.routes import (
    create_auth_blueprint,
    create_translation_blueprint,
    create_user_blueprint,
    create_health_blueprint
)

__all__ = [
    'create_auth_blueprint',
    'create_translation_blueprint',
    'create_user_blueprint',
    'create_health_blueprint'
]
