"""
Product / motorcycle compatibility endpoints.
"""

import pytest

from motoparts.models import Motorcycle


@pytest.fixture
def vario(db_session):
    motorcycle = Motorcycle(manufacturer="Honda", model="Vario 125", type="Matic")
    db_session.add(motorcycle)
    db_session.commit()
    return motorcycle


def test_add_and_list_both_directions(client, product, motorcycle, vario):
    assert client.post(f"/api/products/{product.id}/motorcycles/{motorcycle.id}").status_code == 201
    assert client.post(f"/api/products/{product.id}/motorcycles/{vario.id}").status_code == 201

    motorcycles = client.get(f"/api/products/{product.id}/compatible-motorcycles").get_json()
    products = client.get(f"/api/motorcycles/{vario.id}/compatible-products").get_json()

    assert [m["model"] for m in motorcycles] == ["Beat", "Vario 125"]
    assert [p["id"] for p in products] == [product.id]


def test_duplicate_pair_is_409(client, product, motorcycle):
    client.post(f"/api/products/{product.id}/motorcycles/{motorcycle.id}")

    resp = client.post(f"/api/products/{product.id}/motorcycles/{motorcycle.id}")

    assert resp.status_code == 409


def test_unknown_product_or_motorcycle_is_404(client, product, motorcycle):
    assert client.post(f"/api/products/99999/motorcycles/{motorcycle.id}").status_code == 404
    assert client.post(f"/api/products/{product.id}/motorcycles/99999").status_code == 404
    assert client.get("/api/products/99999/compatible-motorcycles").status_code == 404
    assert client.get("/api/motorcycles/99999/compatible-products").status_code == 404


def test_bulk_add_skips_existing(client, product, motorcycle, vario):
    client.post(f"/api/products/{product.id}/motorcycles/{motorcycle.id}")

    resp = client.post(
        f"/api/products/{product.id}/motorcycles",
        json={"motorcycleIds": [motorcycle.id, vario.id]},
    )

    assert resp.status_code == 201
    data = resp.get_json()
    assert data["added"] == 1
    assert data["alreadyExisting"] == 1


@pytest.mark.parametrize("body", [{}, {"motorcycleIds": []}, {"motorcycleIds": "1,2"}])
def test_bulk_add_requires_id_array(client, product, body):
    assert client.post(f"/api/products/{product.id}/motorcycles", json=body).status_code == 400


def test_bulk_add_unknown_motorcycle_is_404(client, product, motorcycle):
    resp = client.post(f"/api/products/{product.id}/motorcycles", json={"motorcycleIds": [motorcycle.id, 99999]})

    assert resp.status_code == 404
    assert client.get(f"/api/products/{product.id}/compatible-motorcycles").get_json() == []


def test_remove_one(client, product, motorcycle):
    client.post(f"/api/products/{product.id}/motorcycles/{motorcycle.id}")

    assert client.delete(f"/api/products/{product.id}/motorcycles/{motorcycle.id}").status_code == 200
    assert client.delete(f"/api/products/{product.id}/motorcycles/{motorcycle.id}").status_code == 404


def test_clear_all(client, product, motorcycle, vario):
    client.post(f"/api/products/{product.id}/motorcycles", json={"motorcycleIds": [motorcycle.id, vario.id]})

    resp = client.delete(f"/api/products/{product.id}/motorcycles")

    assert resp.status_code == 200
    assert resp.get_json()["removed"] == 2
    assert client.get(f"/api/products/{product.id}/compatible-motorcycles").get_json() == []


def test_compatibility_map(client, product, motorcycle):
    client.post(f"/api/products/{product.id}/motorcycles/{motorcycle.id}")

    resp = client.get(f"/api/product-compatibilities?productIds={product.id},99999")

    assert resp.status_code == 200
    data = resp.get_json()
    assert [m["id"] for m in data[str(product.id)]] == [motorcycle.id]
    assert data["99999"] == []


@pytest.mark.parametrize("query", ["", "?productIds=", "?productIds=1,abc"])
def test_compatibility_map_rejects_bad_ids(client, query):
    assert client.get(f"/api/product-compatibilities{query}").status_code == 400
