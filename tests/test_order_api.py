def auth(token):
    return {"Authorization": f"Bearer {token}"}


def place_order(client, token, seller_id, gig_id, **extra):
    body = {"gigId": gig_id, "sellerId": seller_id, "amount": 50, **extra}
    return client.post("/orders", json=body, headers=auth(token))


def test_full_order_lifecycle(client, parties, gig, admin_token):
    (buyer_token, buyer), (seller_token, seller) = parties

    res = place_order(client, buyer_token, seller["userId"], gig["gigId"])
    assert res.status_code == 201
    order = res.json()["data"]
    assert order["status"] == "Pending payment"
    assert order["gigTitle"] == "Logo design"
    order_id = order["orderId"]

    res = client.put(f"/orders/{order_id}", json={"paymentScreenshot": "https://img/p.png"},
                     headers=auth(buyer_token))
    assert res.json()["data"]["status"] == "Payment pending verify"

    # hidden from the seller until verified
    assert client.get("/orders?role=seller", headers=auth(seller_token)).json()["data"]["orders"] == []
    assert client.get(f"/orders/{order_id}", headers=auth(seller_token)).status_code == 404

    pending = client.get("/admin/orders/pending-verification", headers=auth(admin_token)).json()["data"]
    assert [o["orderId"] for o in pending] == [order_id]
    assert pending[0]["seller"]["name"] == "Bob"
    assert pending[0]["buyer"]["name"] == "Alice"

    res = client.post(f"/admin/orders/{order_id}/verify-payment", json={"verified": True},
                      headers=auth(admin_token))
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "Payment confirmed"

    seller_orders = client.get("/orders?role=seller", headers=auth(seller_token)).json()["data"]["orders"]
    assert [o["orderId"] for o in seller_orders] == [order_id]

    for status in ("In progress", "Delivered", "Completed"):
        res = client.put(f"/orders/{order_id}", json={"status": status}, headers=auth(seller_token))
        assert res.status_code == 200, res.text
        assert res.json()["data"]["status"] == status

    res = client.put(f"/orders/{order_id}", json={"confirmCompletion": True}, headers=auth(buyer_token))
    assert res.json()["data"]["clientConfirmedCompletionAt"] is not None

    eligible = client.get("/orders/withdrawal-eligible", headers=auth(seller_token)).json()["data"]["orders"]
    assert [o["orderId"] for o in eligible] == [order_id]

    res = client.post(f"/orders/{order_id}/withdrawal", headers=auth(seller_token))
    assert res.json()["data"]["withdrawalStatus"] == "pending"

    requests = client.get("/admin/withdrawals?status=pending", headers=auth(admin_token)).json()["data"]
    assert [r["orderId"] for r in requests] == [order_id]

    res = client.post(f"/admin/withdrawals/{order_id}/process", json={"action": "approve"},
                      headers=auth(admin_token))
    assert res.json()["data"]["withdrawalStatus"] == "approved"

    history = client.get("/admin/orders/history", headers=auth(admin_token)).json()["data"]
    assert history[0]["sellerCompleted"] is True
    assert history[0]["clientConfirmed"] is True


def test_create_with_screenshot_skips_pending_payment(client, parties, gig):
    (buyer_token, _), (_, seller) = parties
    res = place_order(client, buyer_token, seller["userId"], gig["gigId"], paymentScreenshot="https://img/p.png")
    data = res.json()["data"]
    assert data["status"] == "Payment pending verify"
    assert data["paymentUploadedAt"] is not None


def test_create_requires_seller(client, parties, gig):
    (buyer_token, _), _ = parties
    res = client.post("/orders", json={"gigId": gig["gigId"], "amount": 10}, headers=auth(buyer_token))
    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert body["error"] == "validation_error"


def test_unknown_update_field_is_rejected(client, parties, gig):
    (buyer_token, _), (_, seller) = parties
    order_id = place_order(client, buyer_token, seller["userId"], gig["gigId"]).json()["data"]["orderId"]

    res = client.put(f"/orders/{order_id}", json={"amount": 1}, headers=auth(buyer_token))
    assert res.status_code == 400
    assert res.json()["error"] == "validation_error"

    res = client.put(f"/orders/{order_id}", json={"sellerId": "someone-else"}, headers=auth(buyer_token))
    assert res.status_code == 400


def test_buyer_cannot_confirm_own_payment(client, parties, gig):
    (buyer_token, _), (_, seller) = parties
    order_id = place_order(client, buyer_token, seller["userId"], gig["gigId"],
                           paymentScreenshot="https://img/p.png").json()["data"]["orderId"]
    res = client.put(f"/orders/{order_id}", json={"status": "Payment confirmed"}, headers=auth(buyer_token))
    assert res.status_code == 400
    assert res.json()["error"] == "invalid_state"


def test_outsider_gets_403(client, parties, gig, register):
    (buyer_token, _), (_, seller) = parties
    outsider_token, _ = register("Eve", "client")
    order_id = place_order(client, buyer_token, seller["userId"], gig["gigId"]).json()["data"]["orderId"]

    res = client.get(f"/orders/{order_id}", headers=auth(outsider_token))
    assert res.status_code == 403
    assert res.json()["error"] == "authorization_error"


def test_orders_require_token(client):
    res = client.get("/orders")
    assert res.status_code == 401
    assert res.json()["error"] == "authentication_error"

    res = client.get("/orders", headers=auth("not-a-jwt"))
    assert res.status_code == 401


def test_rejected_payment_keeps_order_pending(client, parties, gig, admin_token):
    (buyer_token, _), (_, seller) = parties
    order_id = place_order(client, buyer_token, seller["userId"], gig["gigId"],
                           paymentScreenshot="https://img/p.png").json()["data"]["orderId"]

    res = client.post(f"/admin/orders/{order_id}/verify-payment", json={"verified": False},
                      headers=auth(admin_token))
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "Payment pending verify"

    # the buyer can replace the screenshot while it is still pending
    res = client.put(f"/orders/{order_id}", json={"paymentScreenshot": "https://img/p2.png"},
                     headers=auth(buyer_token))
    assert res.json()["data"]["paymentScreenshot"] == "https://img/p2.png"


def test_admin_endpoints_reject_non_admins(client, parties):
    (buyer_token, _), _ = parties
    res = client.post("/admin/orders/whatever/verify-payment", json={"verified": True},
                      headers=auth(buyer_token))
    assert res.status_code == 403


def test_create_rejects_values_the_columns_cannot_hold(client, parties, gig):
    (buyer_token, _), (_, seller) = parties

    res = place_order(client, buyer_token, seller["userId"], "g" * 37)
    assert res.status_code == 400
    assert res.json()["error"] == "validation_error"

    res = place_order(client, buyer_token, seller["userId"], gig["gigId"], amount=1_000_000_000)
    assert res.status_code == 400
    assert res.json()["error"] == "validation_error"

    _, (seller_token, _) = parties
    res = client.post("/gigs", json={"title": "Villa", "price": 1_000_000_000, "deliveryTime": 3},
                      headers=auth(seller_token))
    assert res.status_code == 400
