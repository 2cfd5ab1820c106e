from functools import wraps
from flask import jsonify
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from app.errors import EmailNotVerified
from app.extensions import db
from app.models.user import User
from app.security import Principal, secure_session


def load_active_user(user_id):
    user = db.session.get(User, user_id) if user_id else None
    if not user or not user.is_active or user.is_deleted:
        return None
    return user


def principal_required(*roles):
    """Decorator resolving the caller into a principal and its SecureSession.

    The role always comes from the users table, never from the token.
    Passes ``current_user`` and ``gateway`` to the view.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            user = load_active_user(get_jwt_identity())

            if user is None:
                return jsonify({'error': 'User not found or inactive'}), 403

            if not user.is_verified:
                raise EmailNotVerified()

            if roles and user.role not in roles:
                return jsonify({'error': 'Insufficient permissions'}), 403

            kwargs['current_user'] = user
            kwargs['gateway'] = secure_session(Principal.from_user(user))
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def principal_optional(fn):
    """Like principal_required but anonymous callers get an anonymous principal"""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request(optional=True)
        user = load_active_user(get_jwt_identity())
        if user is not None and not user.is_verified:
            user = None
        kwargs['current_user'] = user
        kwargs['gateway'] = secure_session(Principal.from_user(user))
        return fn(*args, **kwargs)
    return wrapper
