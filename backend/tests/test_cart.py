from conftest import API, auth, create_product, register


def test_my_cart_is_created_lazily(client, customer):
    user, token = customer
    res = client.get(f"{API}/carts/me", headers=auth(token))
    assert res.status_code == 200
    cart = res.json()["cart"]
    assert cart["user_id"] == user["id"]
    assert cart["items"] == []
    assert cart["total"] == 0

    again = client.get(f"{API}/carts/me", headers=auth(token)).json()["cart"]
    assert again["id"] == cart["id"]


def test_create_cart_once_per_user(client, customer, product_id):
    _, token = customer
    res = client.post(f"{API}/carts", json={"items": [{"product_id": product_id, "quantity": 2}]}, headers=auth(token))
    assert res.status_code == 201
    cart = res.json()["cart"]
    assert cart["items"][0]["product_id"] == product_id
    assert cart["items"][0]["quantity"] == 2
    assert cart["total"] == 100.0

    res = client.post(f"{API}/carts", json={"items": []}, headers=auth(token))
    assert res.status_code == 409


def test_cart_rejects_invalid_lines(client, customer, product_id):
    _, token = customer
    res = client.post(f"{API}/carts", json={"items": [{"product_id": product_id, "quantity": 0}]}, headers=auth(token))
    assert res.status_code == 400
    res = client.post(f"{API}/carts", json={"items": [{"product_id": 777, "quantity": 1}]}, headers=auth(token))
    assert res.status_code == 404


def test_update_cart_replaces_items(client, customer, product_id):
    _, token = customer
    other_id = create_product(name="Mouse", price=20.0)
    cart = client.post(
        f"{API}/carts", json={"items": [{"product_id": product_id, "quantity": 1}]}, headers=auth(token)
    ).json()["cart"]

    res = client.put(
        f"{API}/carts/{cart['id']}",
        json={"items": [
            {"product_id": product_id, "quantity": 1},
            {"product_id": other_id, "quantity": 1},
            {"product_id": product_id, "quantity": 2},
        ]},
        headers=auth(token),
    )
    assert res.status_code == 200
    items = {i["product_id"]: i["quantity"] for i in res.json()["cart"]["items"]}
    assert items == {product_id: 3, other_id: 1}
    assert res.json()["cart"]["total"] == 170.0

    res = client.put(f"{API}/carts/{cart['id']}", json={"items": []}, headers=auth(token))
    assert res.json()["cart"]["items"] == []


def test_add_item_merges_quantity(client, customer, product_id):
    _, token = customer
    client.post(f"{API}/carts/me/items", json={"product_id": product_id, "quantity": 1}, headers=auth(token))
    res = client.post(f"{API}/carts/me/items", json={"product_id": product_id, "quantity": 2}, headers=auth(token))
    assert res.status_code == 200
    items = res.json()["cart"]["items"]
    assert len(items) == 1
    assert items[0]["quantity"] == 3

    res = client.post(f"{API}/carts/me/items", json={"product_id": 999, "quantity": 1}, headers=auth(token))
    assert res.status_code == 404


def test_cart_ownership(client, customer, product_id, admin_token):
    _, token = customer
    cart = client.post(
        f"{API}/carts", json={"items": [{"product_id": product_id, "quantity": 1}]}, headers=auth(token)
    ).json()["cart"]
    _, intruder = register(client, email="mallory@example.com", name="Mallory")

    assert client.get(f"{API}/carts/{cart['id']}", headers=auth(intruder)).status_code == 403
    assert client.put(f"{API}/carts/{cart['id']}", json={"items": []}, headers=auth(intruder)).status_code == 403
    assert client.delete(f"{API}/carts/{cart['id']}", headers=auth(intruder)).status_code == 403

    assert client.get(f"{API}/carts/{cart['id']}", headers=auth(admin_token)).status_code == 200
    assert client.get(f"{API}/carts/{cart['id']}", headers=auth(token)).status_code == 200


def test_delete_cart_by_owner_and_admin(client, customer, admin_token):
    _, token = customer
    cart = client.post(f"{API}/carts", json={"items": []}, headers=auth(token)).json()["cart"]
    assert client.delete(f"{API}/carts/{cart['id']}", headers=auth(token)).status_code == 200
    assert client.get(f"{API}/carts/{cart['id']}", headers=auth(token)).status_code == 404

    cart = client.post(f"{API}/carts", json={"items": []}, headers=auth(token)).json()["cart"]
    assert client.delete(f"{API}/carts/{cart['id']}", headers=auth(admin_token)).status_code == 200


def test_list_all_carts_is_admin_only(client, customer, admin_token):
    _, token = customer
    client.get(f"{API}/carts/me", headers=auth(token))
    assert client.get(f"{API}/carts", headers=auth(token)).status_code == 403

    res = client.get(f"{API}/carts", headers=auth(admin_token))
    assert res.status_code == 200
    assert len(res.json()["carts"]) == 1


def test_cart_requires_authentication(client):
    assert client.get(f"{API}/carts/me").status_code == 401
    assert client.post(f"{API}/carts", json={"items": []}).status_code == 401
