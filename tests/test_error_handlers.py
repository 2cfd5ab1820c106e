import pytest
from sqlalchemy.exc import IntegrityError
from app.errors import AuthorizationDenied, IntegrityConflict, NotFound, ValidationFailed


class TestMarketplaceErrors:
    """Domain errors crossing the HTTP boundary"""

    @pytest.mark.parametrize(
        "error,status,body",
        [
            (AuthorizationDenied("update on orders"), 403, {"error": "Permission denied"}),
            (NotFound("Order not found"), 404, {"error": "Order not found"}),
            (IntegrityConflict("Username already taken"), 409, {"error": "Username already taken"}),
            (
                ValidationFailed("price", "Must be positive."),
                400,
                {"error": "Validation error", "messages": {"price": ["Must be positive."]}},
            ),
        ],
    )
    def test_status_and_body(self, app, error, status, body):
        client = app.test_client()

        @app.route("/test-marketplace-error")
        def raise_error():
            raise error

        response = client.get("/test-marketplace-error")
        assert response.status_code == status
        assert response.json == body

    def test_denial_reason_not_leaked(self, app):
        client = app.test_client()

        @app.route("/test-denied")
        def denied():
            raise AuthorizationDenied("orders_buyer_cancel rejected for principal 42")

        response = client.get("/test-denied")
        assert "orders_buyer_cancel" not in response.get_data(as_text=True)


class TestErrorHandlers:
    """Test error handlers"""

    def test_404_error_handler(self, app):
        response = app.test_client().get("/nonexistent-route")
        assert response.status_code == 404
        assert "error" in response.json

    def test_500_includes_details_outside_production(self, app):
        client = app.test_client()

        @app.route("/test-500")
        def test_500():
            raise Exception("Test error")

        response = client.get("/test-500")
        assert response.status_code == 500
        assert response.json["details"] == "Test error"

    def test_500_hides_details_in_production(self, app):
        app.config["APP_ENV"] = "production"
        client = app.test_client()

        @app.route("/test-500-prod")
        def test_500():
            raise Exception("connection string postgres://secret")

        response = client.get("/test-500-prod")
        assert response.status_code == 500
        assert response.json == {"error": "An unexpected error occurred"}

    def test_integrity_error_handler(self, app):
        app.config["APP_ENV"] = "production"
        client = app.test_client()

        @app.route("/test-integrity")
        def test_integrity():
            raise IntegrityError("INSERT", {}, Exception("duplicate key orders_order_number_key"))

        response = client.get("/test-integrity")
        assert response.status_code == 409
        assert "details" not in response.json

    def test_marshmallow_validation_error(self, app):
        from marshmallow import ValidationError

        client = app.test_client()

        @app.route("/test-validation")
        def test_validation():
            raise ValidationError({"email": ["Not a valid email address."]})

        response = client.get("/test-validation")
        assert response.status_code == 400
        assert response.json["messages"] == {"email": ["Not a valid email address."]}

    def test_health(self, app):
        response = app.test_client().get("/health")
        assert response.status_code == 200
        assert response.json == {"status": "healthy"}
