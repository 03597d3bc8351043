"""
Integration tests for the product endpoints, exercising handler, service and
repository against a real SQLite database.
"""

from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from product_api.controllers import product_controller


def create_product(client: TestClient, **overrides) -> dict:
    payload = {"name": "Pen", "price": 1.5, "quantity": 100}
    payload.update(overrides)
    response = client.post("/products", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_read_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "Product API is running"


def test_health_check_reports_disabled_sink(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["log_sink"] == "disabled"


def test_create_product_success(client: TestClient):
    response = client.post("/products", json={"name": "Pen", "price": 1.5, "quantity": 100})

    assert response.status_code == 201
    assert response.json() == {"data": {"id": 1, "name": "Pen", "price": 1.5, "quantity": 100}}
    assert "X-Request-ID" in response.headers


def test_create_assigns_distinct_positive_ids(client: TestClient):
    first = create_product(client, name="Pen")
    second = create_product(client, name="Pencil")

    assert first["id"] > 0
    assert second["id"] > 0
    assert first["id"] != second["id"]


def test_create_with_zero_id_lets_store_assign(client: TestClient):
    product = create_product(client, id=0)
    assert product["id"] > 0


def test_create_malformed_json_returns_400_and_creates_nothing(client: TestClient):
    response = client.post(
        "/products",
        content=b'{"name": "Pen", "price": ',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert "error" in response.json()
    assert client.get("/products/1").status_code == 404


def test_create_wrong_field_type_returns_400(client: TestClient):
    response = client.post("/products", json={"name": "Pen", "price": "cheap", "quantity": 1})
    assert response.status_code == 400
    assert "price" in response.json()["error"]


def test_create_non_object_body_returns_400(client: TestClient):
    response = client.post("/products", json=["Pen", 1.5, 100])
    assert response.status_code == 400


def test_create_duplicate_id_returns_500(client: TestClient):
    product = create_product(client)
    response = client.post("/products", json={"id": product["id"], "name": "Copy"})
    assert response.status_code == 500
    assert response.json()["error"]


def test_get_product(client: TestClient):
    product = create_product(client)
    response = client.get(f"/products/{product['id']}")
    assert response.status_code == 200
    assert response.json()["data"] == product


def test_get_missing_product_returns_404(client: TestClient):
    response = client.get("/products/999")
    assert response.status_code == 404
    assert response.json() == {"error": "record not found"}


def test_update_product_replaces_all_fields(client: TestClient):
    product = create_product(client)

    response = client.put(
        f"/products/{product['id']}",
        json={"name": "Fountain Pen", "price": 12.0, "quantity": 3},
    )

    assert response.status_code == 200
    assert response.json()["data"] == {
        "id": product["id"], "name": "Fountain Pen", "price": 12.0, "quantity": 3
    }
    assert client.get(f"/products/{product['id']}").json()["data"]["name"] == "Fountain Pen"


def test_update_omitted_fields_are_reset(client: TestClient):
    product = create_product(client)

    response = client.put(f"/products/{product['id']}", json={"price": 2.0})

    assert response.status_code == 200
    stored = client.get(f"/products/{product['id']}").json()["data"]
    assert stored == {"id": product["id"], "name": "", "price": 2.0, "quantity": 0}


def test_update_path_id_wins_over_body_id(client: TestClient):
    first = create_product(client, name="First")
    second = create_product(client, name="Second")

    response = client.put(f"/products/{first['id']}", json={"id": second["id"], "name": "Renamed"})

    assert response.status_code == 200
    assert response.json()["data"]["id"] == first["id"]
    assert client.get(f"/products/{second['id']}").json()["data"]["name"] == "Second"


def test_update_missing_product_returns_404_without_insert(client: TestClient):
    response = client.put("/products/42", json={"name": "Ghost", "price": 1.0, "quantity": 1})

    assert response.status_code == 404
    assert client.get("/products/42").status_code == 404


def test_update_non_integer_id_returns_400(client: TestClient):
    response = client.put("/products/abc", json={"name": "Pen"})
    assert response.status_code == 400
    assert "abc" in response.json()["error"]


def test_update_malformed_body_returns_400(client: TestClient):
    product = create_product(client)
    response = client.put(
        f"/products/{product['id']}",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert client.get(f"/products/{product['id']}").json()["data"] == product


def test_delete_product(client: TestClient):
    product = create_product(client)

    response = client.delete(f"/products/{product['id']}")

    assert response.status_code == 204
    assert response.content == b""
    assert client.get(f"/products/{product['id']}").status_code == 404


def test_delete_missing_product_returns_404(client: TestClient):
    kept = create_product(client)

    response = client.delete("/products/999")

    assert response.status_code == 404
    assert client.get(f"/products/{kept['id']}").status_code == 200


def test_delete_non_integer_id_returns_400(client: TestClient):
    response = client.delete("/products/1.5")
    assert response.status_code == 400


def test_failures_are_logged_with_method_and_operation(client: TestClient):
    with capture_logs() as logs:
        client.delete("/products/999")

    tagged = [entry for entry in logs if entry.get("methodName") == "delete_product"]
    assert len(tagged) == 1
    assert tagged[0]["type"] == "delete_product_handler_is_exists_operation"
    assert tagged[0]["log_level"] == "error"

    service_entries = [entry for entry in logs if entry.get("methodName") == "get_product_by_id"]
    assert service_entries[0]["type"] == "get_product_by_id_service_action"


def test_api_prefix_is_applied(tmp_path):
    from product_api.core.config import Settings
    from product_api.main import create_app

    settings = Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'prefixed.db'}",
        elasticsearch_url="",
        environment="test",
        api_prefix="/api/v1",
    )
    with TestClient(create_app(settings)) as client:
        assert client.post("/api/v1/products", json={"name": "Pen"}).status_code == 201
        assert client.get("/products/1").status_code == 404


def test_create_nan_price_returns_400_and_creates_nothing(client: TestClient):
    response = client.post(
        "/products",
        content=b'{"name": "Pen", "price": NaN, "quantity": 1}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert "price" in response.json()["error"]
    assert client.get("/products/1").status_code == 404


def test_create_overflowing_price_returns_400_and_creates_nothing(client: TestClient):
    response = client.post(
        "/products",
        content=b'{"name": "Pen", "price": 1e400, "quantity": 1}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert client.get("/products/1").status_code == 404


def test_update_with_infinite_price_keeps_stored_row(client: TestClient):
    product = create_product(client)

    response = client.put(
        f"/products/{product['id']}",
        content=b'{"name": "Pen", "price": Infinity, "quantity": 1}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert client.get(f"/products/{product['id']}").json()["data"] == product


def test_out_of_range_id_returns_400_without_reaching_store(app, client: TestClient):
    huge = "99999999999999999999"

    class UnreachableService:
        async def get_product_by_id(self, product):
            raise AssertionError("store should not be queried")

    app.dependency_overrides[product_controller.get_product_service] = lambda: UnreachableService()
    try:
        assert client.get(f"/products/{huge}").status_code == 400
        assert client.put(f"/products/{huge}", json={"name": "Pen"}).status_code == 400
        response = client.delete(f"/products/-{huge}")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 400
    assert "out of range" in response.json()["error"]


def test_largest_int64_id_is_a_plain_miss(client: TestClient):
    assert client.get("/products/9223372036854775807").status_code == 404
    assert client.delete("/products/9223372036854775807").status_code == 404


def test_create_out_of_range_quantity_returns_400(client: TestClient):
    response = client.post("/products", json={"name": "Pen", "quantity": 2 ** 70})
    assert response.status_code == 400
