"""
API Routes
==========
Flask blueprints for all API endpoints.
"""
import json
from datetime import datetime, timezone

from flask import Blueprint, Response, request, jsonify, g

from translation_assistant.config import config
from translation_assistant.config.constants import (
    VALID_TONES,
    VALID_THEMES,
    INTERFACE_LANGUAGES,
    SORT_FIELDS,
    ACCOUNT_DELETE_CONFIRMATION,
)
from translation_assistant.api.middleware import rate_limit, require_auth
from translation_assistant.database.repositories import TranslationFilter, UserRepository
from translation_assistant.models.schemas import ApiResponse
from translation_assistant.models.user import UserPreferences
from translation_assistant.services.auth_service import AuthService, AccountError, issue_token
from translation_assistant.services.openai_client import (
    get_openai_client,
    UpstreamRateLimitError,
    QuotaExceededError,
    ServiceConfigurationError,
    ModelUnavailableError,
)
from translation_assistant.services.translation_service import (
    TranslationService,
    TagLimitError,
    OwnershipError,
)
from translation_assistant.utils.validators import (
    validate_registration,
    validate_login,
    validate_translation,
    validate_tags,
    validate_user_update,
    validate_password_change,
    validate_search,
    validate_pagination,
    normalize_email,
    parse_iso_date,
    field_error,
    MAX_BATCH_DELETE,
    MAX_OFFSET,
)
from translation_assistant.utils.logging import get_logger


def _ok(data: dict = None, message: str = None, status: int = 200):
    return jsonify(ApiResponse(success=True, message=message, data=data).to_dict()), status


def _fail(message: str, status: int, errors: list = None):
    return jsonify(ApiResponse(success=False, message=message, errors=errors).to_dict()), status


def _validation_failed(errors: list):
    return _fail("Validation failed", 400, errors)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _translation_service() -> TranslationService:
    return TranslationService(client=get_openai_client())


def create_auth_blueprint() -> Blueprint:
    """Create authentication routes blueprint."""
    bp = Blueprint('auth', __name__, url_prefix='/api/auth')
    logger = get_logger().auth_logger

    @bp.route('/register', methods=['POST'])
    @rate_limit('auth')
    def register():
        """Create an account."""
        data = _json_body()
        errors = validate_registration(data)
        if errors:
            return _validation_failed(errors)

        try:
            user, token = AuthService().register(
                email=normalize_email(data['email']),
                username=data['username'],
                password=data['password']
            )
        except AccountError as e:
            return _fail(e.message, e.status_code)
        except Exception as e:
            logger.error(f"Registration failed: {e}")
            return _fail("Registration failed, please try again later", 500)

        return _ok({'token': token, 'user': user.to_dict()}, "User registered successfully", 201)

    @bp.route('/login', methods=['POST'])
    @rate_limit('auth')
    def login():
        """Exchange credentials for a token."""
        data = _json_body()
        errors = validate_login(data)
        if errors:
            return _validation_failed(errors)

        try:
            user, token = AuthService().login(normalize_email(data['email']), data['password'])
        except AccountError as e:
            return _fail(e.message, e.status_code)
        except Exception as e:
            logger.error(f"Login failed: {e}")
            return _fail("Login failed, please try again later", 500)

        return _ok({'token': token, 'user': user.to_dict()}, "Login successful")

    @bp.route('/logout', methods=['POST'])
    @require_auth
    def logout():
        """Tokens are stateless; the client discards its copy."""
        logger.info(f"User logged out: {g.current_user.email}")
        return _ok(message="Logout successful")

    @bp.route('/me', methods=['GET'])
    @require_auth
    def me():
        return _ok({'user': g.current_user.to_dict()})

    @bp.route('/password', methods=['PUT'])
    @require_auth
    @rate_limit('password')
    def change_password():
        data = _json_body()
        errors = validate_password_change(data)
        if errors:
            return _validation_failed(errors)

        try:
            AuthService().change_password(
                g.current_user.id,
                data['currentPassword'],
                data['newPassword']
            )
        except AccountError as e:
            return _fail(e.message, e.status_code)
        except Exception as e:
            logger.error(f"Password change failed: {e}")
            return _fail("Password change failed, please try again later", 500)

        return _ok(message="Password changed successfully")

    @bp.route('/refresh', methods=['POST'])
    @require_auth
    def refresh():
        """Issue a new token for the current user."""
        user = g.current_user
        return _ok({'token': issue_token(user), 'user': user.to_dict()}, "Token refreshed successfully")

    return bp


def _filters_from_search(args) -> TranslationFilter:
    tags = [tag.strip() for tag in args.get('tags', '').split(',') if tag.strip()]
    is_favorite = args.get('isFavorite')
    return TranslationFilter(
        tone=args.get('tone'),
        query=args.get('query'),
        tags=tags,
        date_from=parse_iso_date(args.get('dateFrom')),
        date_to=parse_iso_date(args.get('dateTo')),
        is_favorite=None if is_favorite is None else is_favorite.lower() == 'true',
        sort_by=SORT_FIELDS.get(args.get('sortBy', 'createdAt'), 'created_at'),
        sort_order=args.get('sortOrder', 'desc'),
    )


def create_translation_blueprint() -> Blueprint:
    """Create translation routes blueprint."""
    bp = Blueprint('translation', __name__, url_prefix='/api/translation')
    logger = get_logger().api_logger

    @bp.route('', methods=['POST'])
    @require_auth
    @rate_limit('translation')
    def translate():
        """Translate text and store the result."""
        data = _json_body()
        errors = validate_translation(data)
        if errors:
            return _validation_failed(errors)

        try:
            translation = _translation_service().translate(
                user_id=g.current_user.id,
                text=data['text'],
                tone=data['tone'],
                tags=data.get('tags') or [],
                original_language=data.get('originalLanguage')
            )
        except ValueError as e:
            return _fail(str(e), 400)
        except UpstreamRateLimitError as e:
            logger.error(f"Translation failed: {e}")
            return _fail("Too many requests, please try again later", 429)
        except (ServiceConfigurationError, QuotaExceededError, ModelUnavailableError) as e:
            logger.error(f"Translation failed: {e}")
            return _fail("Service temporarily unavailable, please try again later", 500)
        except Exception as e:
            logger.error(f"Translation failed: {e}")
            return _fail("Translation failed, please try again", 500)

        return _ok({'translation': translation.to_dict()}, "Translation successful")

    @bp.route('', methods=['GET'])
    @require_auth
    def list_translations():
        """List translations with optional tone, text and favorite filters."""
        is_valid, error, page, limit = validate_pagination(request.args)
        if not is_valid:
            return _validation_failed([field_error('pagination', error)])

        tone = request.args.get('tone')
        if tone in (None, '', 'all'):
            tone = None
        elif tone not in VALID_TONES:
            return _validation_failed([field_error('tone', "Invalid tone type", tone)])

        filters = TranslationFilter(
            tone=tone,
            query=request.args.get('search') or None,
            is_favorite=True if request.args.get('favorites') == 'true' else None
        )
        items, pagination = _translation_service().list(g.current_user.id, filters, page, limit)

        return _ok({
            'translations': [t.to_dict() for t in items],
            'pagination': pagination.to_dict(),
        })

    @bp.route('/search', methods=['GET'])
    @require_auth
    def search_translations():
        """Search with text, tag, date and favorite filters."""
        errors = validate_search(request.args)
        sort_by = request.args.get('sortBy')
        if sort_by is not None and sort_by not in SORT_FIELDS:
            errors.append(field_error(
                'sortBy', "Sort field must be one of: " + ", ".join(SORT_FIELDS), sort_by
            ))
        is_valid, error, page, limit = validate_pagination(request.args)
        if not is_valid:
            errors.append(field_error('pagination', error))
        if errors:
            return _validation_failed(errors)

        items, pagination = _translation_service().list(
            g.current_user.id, _filters_from_search(request.args), page, limit
        )
        return _ok({
            'translations': [t.to_dict() for t in items],
            'pagination': pagination.to_dict(),
        })

    @bp.route('/favorites', methods=['GET'])
    @require_auth
    def list_favorites():
        is_valid, error, page, limit = validate_pagination(request.args)
        if not is_valid:
            return _validation_failed([field_error('pagination', error)])

        items, pagination = _translation_service().list(
            g.current_user.id, TranslationFilter(is_favorite=True), page, limit
        )
        return _ok({
            'translations': [t.to_dict() for t in items],
            'pagination': pagination.to_dict(),
        })

    @bp.route('/stats', methods=['GET'])
    @require_auth
    def get_statistics():
        return _ok(_translation_service().statistics(g.current_user.id))

    @bp.route('/batch-delete', methods=['POST'])
    @require_auth
    def batch_delete():
        """Delete several translations at once."""
        ids = _json_body().get('ids')
        if (
            not isinstance(ids, list) or not ids
            or not all(
                isinstance(i, int) and not isinstance(i, bool) and 0 < i <= MAX_OFFSET
                for i in ids
            )
        ):
            return _fail("Please select translation records to delete", 400)
        if len(ids) > MAX_BATCH_DELETE:
            return _fail(f"You can delete at most {MAX_BATCH_DELETE} records at a time", 400)

        try:
            deleted = _translation_service().delete_many(g.current_user.id, ids)
        except OwnershipError as e:
            return _fail(str(e), 400)

        return _ok({'deletedCount': deleted}, f"Successfully deleted {deleted} records")

    @bp.route('/<int:translation_id>', methods=['GET'])
    @require_auth
    def get_translation(translation_id: int):
        translation = _translation_service().get(g.current_user.id, translation_id)
        if not translation:
            return _fail("Translation record not found", 404)
        return _ok({'translation': translation.to_dict()})

    @bp.route('/<int:translation_id>/favorite', methods=['POST'])
    @require_auth
    def toggle_favorite(translation_id: int):
        translation = _translation_service().toggle_favorite(g.current_user.id, translation_id)
        if not translation:
            return _fail("Translation record not found", 404)

        message = "Added to favorites" if translation.is_favorite else "Removed from favorites"
        return _ok({'id': translation.id, 'isFavorite': translation.is_favorite}, message)

    @bp.route('/<int:translation_id>/tags', methods=['POST'])
    @require_auth
    def add_tags(translation_id: int):
        tags = _json_body().get('tags')
        errors = validate_tags(tags)
        if errors:
            return _validation_failed(errors)

        try:
            translation = _translation_service().add_tags(g.current_user.id, translation_id, tags)
        except TagLimitError as e:
            return _fail(str(e), 400)

        if not translation:
            return _fail("Translation record not found", 404)
        return _ok({'translation': translation.to_dict()}, "Tags added successfully")

    @bp.route('/<int:translation_id>/tags/<tag>', methods=['DELETE'])
    @require_auth
    def remove_tag(translation_id: int, tag: str):
        translation = _translation_service().remove_tag(g.current_user.id, translation_id, tag)
        if not translation:
            return _fail("Translation record not found", 404)
        return _ok({'translation': translation.to_dict()}, "Tag removed successfully")

    @bp.route('/<int:translation_id>', methods=['DELETE'])
    @require_auth
    def delete_translation(translation_id: int):
        if not _translation_service().delete(g.current_user.id, translation_id):
            return _fail("Translation record not found", 404)
        return _ok(message="Translation record deleted successfully")

    return bp


def create_user_blueprint() -> Blueprint:
    """Create user account routes blueprint."""
    bp = Blueprint('user', __name__, url_prefix='/api/user')
    logger = get_logger().api_logger

    @bp.route('/profile', methods=['GET'])
    @require_auth
    def get_profile():
        user = g.current_user
        return _ok({
            'user': user.to_dict(),
            'stats': _translation_service().user_stats(user.id),
        })

    @bp.route('/profile', methods=['PUT'])
    @require_auth
    def update_profile():
        data = _json_body()
        errors = validate_user_update(data)
        if errors:
            return _validation_failed(errors)

        username = data.get('username')
        email = normalize_email(data['email']) if data.get('email') else None
        if not username and not email:
            return _fail("At least one field (username or email) must be provided", 400)

        users = UserRepository()
        user = g.current_user
        existing = users.find_conflict(email=email, username=username, exclude_id=user.id)
        if existing:
            if email and existing.email == email:
                return _fail("Email is already in use", 400)
            return _fail("Username is already taken", 400)

        updated = users.update_profile(user.id, username=username, email=email)
        logger.info(f"User {user.id} updated profile")
        return _ok({'user': updated.to_dict()}, "Profile updated successfully")

    @bp.route('/preferences', methods=['GET'])
    @require_auth
    def get_preferences():
        return _ok({'preferences': g.current_user.preferences.to_dict()})

    @bp.route('/preferences', methods=['PUT'])
    @require_auth
    def update_preferences():
        data = _json_body()
        errors = []

        tone = data.get('defaultTone')
        if tone is not None and tone not in VALID_TONES:
            errors.append(field_error('defaultTone', "Invalid default tone", tone))

        language = data.get('language')
        if language is not None and language not in INTERFACE_LANGUAGES:
            errors.append(field_error('language', "Unsupported language", language))

        theme = data.get('theme')
        if theme is not None and theme not in VALID_THEMES:
            errors.append(field_error('theme', "Invalid theme", theme))

        if errors:
            return _validation_failed(errors)

        current = g.current_user.preferences
        preferences = UserPreferences(
            default_tone=tone or current.default_tone,
            language=language or current.language,
            theme=theme or current.theme,
        )
        UserRepository().update_preferences(g.current_user.id, preferences)

        return _ok({'preferences': preferences.to_dict()}, "Preferences updated successfully")

    @bp.route('/preferences/reset', methods=['POST'])
    @require_auth
    def reset_preferences():
        preferences = UserPreferences()
        UserRepository().update_preferences(g.current_user.id, preferences)
        logger.info(f"User {g.current_user.id} reset preferences")
        return _ok({'preferences': preferences.to_dict()}, "Preferences reset to defaults")

    @bp.route('/stats', methods=['GET'])
    @require_auth
    def get_dashboard():
        return _ok(_translation_service().dashboard(g.current_user.id))

    @bp.route('/history', methods=['GET'])
    @require_auth
    def get_history():
        is_valid, error, page, limit = validate_pagination(request.args)
        if not is_valid:
            return _validation_failed([field_error('pagination', error)])

        entries, pagination = _translation_service().history_page(g.current_user.id, page, limit)
        return _ok({
            'history': [entry.to_dict() for entry in entries],
            'pagination': pagination.to_dict(),
        })

    @bp.route('/export', methods=['POST'])
    @require_auth
    @rate_limit('export')
    def export_data():
        """Download everything stored about the user as a JSON file."""
        user = g.current_user
        payload = _translation_service().export(user)
        logger.info(f"User {user.id} exported data")

        return Response(
            json.dumps(payload, ensure_ascii=False, indent=2),
            mimetype='application/json',
            headers={
                'Content-Disposition': f'attachment; filename=translation-data-{user.id}.json'
            }
        )

    @bp.route('/account', methods=['DELETE'])
    @require_auth
    def delete_account():
        data = _json_body()
        if not data.get('password'):
            return _validation_failed([field_error('password', "Password is required")])
        if data.get('confirmText') != ACCOUNT_DELETE_CONFIRMATION:
            return _fail(f'Please type "{ACCOUNT_DELETE_CONFIRMATION}" to confirm account deletion', 400)

        try:
            user = AuthService().check_password(g.current_user.id, data['password'])
        except AccountError as e:
            return _fail(e.message, e.status_code)

        UserRepository().delete(user.id)
        logger.info(f"User account deleted: {user.email}")
        return _ok(message="Account deleted successfully")

    return bp


def create_health_blueprint() -> Blueprint:
    """Create health check routes blueprint."""
    bp = Blueprint('health', __name__)

    @bp.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'OK',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'environment': config.server.environment,
        })

    return bp
