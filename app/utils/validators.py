from functools import wraps
from flask import request, jsonify
from marshmallow import ValidationError


def validate_schema(schema_class):
    """Decorator to validate request data against schema.

    Runs before the view body, so invalid input never reaches a service or
    the database.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            schema = schema_class()
            try:
                validated_data = schema.load(request.get_json(silent=True) or {})
                request.validated_data = validated_data
            except ValidationError as err:
                return jsonify({'error': 'Validation error', 'messages': err.messages}), 400
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def validate_pagination():
    """Validate pagination parameters"""
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', 20, type=int)

    if page < 1:
        page = 1
    if per_page < 1 or per_page > 100:
        per_page = 20

    return page, per_page


def paginate(rows, page, per_page):
    """Slice an already policy-filtered list the way Query.paginate would"""
    total = len(rows)
    start = (page - 1) * per_page
    pages = (total + per_page - 1) // per_page if total else 0
    return rows[start:start + per_page], total, pages
