from app.routes.auth import auth_bp
from app.routes.layout import layout_bp
from app.routes.listings import listing_bp
from app.routes.orders import order_bp
from app.routes.profiles import profile_bp
from app.routes.resolution import dispute_bp, return_bp, refund_bp
from app.routes.conversations import conversation_bp
from app.routes.storage import storage_bp
from app.routes.admin import admin_bp


def register_blueprints(app):
    """Register all blueprints"""
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(layout_bp, url_prefix='/api/layout')
    app.register_blueprint(listing_bp, url_prefix='/api/listings')
    app.register_blueprint(order_bp, url_prefix='/api/orders')
    app.register_blueprint(profile_bp, url_prefix='/api/profiles')
    app.register_blueprint(dispute_bp, url_prefix='/api/disputes')
    app.register_blueprint(return_bp, url_prefix='/api/returns')
    app.register_blueprint(refund_bp, url_prefix='/api/refunds')
    app.register_blueprint(conversation_bp, url_prefix='/api/conversations')
    app.register_blueprint(storage_bp, url_prefix='/api/storage')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
