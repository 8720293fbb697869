import pytest

from marketplace.errors import InvalidStateTransition


@pytest.fixture
def failing_app(app):
    @app.route("/boom")
    def boom():
        raise RuntimeError("database password is hunter2")

    @app.route("/conflict")
    def conflict():
        raise InvalidStateTransition("Only paused subscriptions can be resumed")

    return app


def test_unhandled_error_hides_details(failing_app):
    response = failing_app.test_client().get("/boom")

    assert response.status_code == 500
    body = response.get_json()
    assert body["error"] == "Internal Server Error"
    assert "hunter2" not in response.get_data(as_text=True)


def test_domain_error_maps_to_status(failing_app):
    response = failing_app.test_client().get("/conflict")

    assert response.status_code == 409
    assert response.get_json() == {
        "error": "invalid_state_transition",
        "message": "Only paused subscriptions can be resumed",
        "status_code": 409,
    }


def test_unknown_route_uses_http_handler(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.get_json()["error"] == "Not Found"
