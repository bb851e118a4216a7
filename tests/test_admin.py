def _seed(submit, enquiry_body):
    ids = []
    for i, pg in enumerate(["pg-1", "pg-1", "pg-2"]):
        r = submit(enquiry_body(pgId=pg, phone=f"98000000{i:02d}"))
        assert r.status_code == 201
        ids.append(r.json()["enquiryId"])
    return ids


def test_list_requires_key(client):
    r = client.get("/api/enquiries")
    assert r.status_code == 401


def test_list_accepts_query_key(client, admin_secret):
    r = client.get("/api/enquiries", params={"key": admin_secret})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "enquiries": []}


def test_list_filters_and_paginates(client, admin_headers, submit, enquiry_body):
    ids = _seed(submit, enquiry_body)
    r = client.get("/api/enquiries", headers=admin_headers)
    assert [e["id"] for e in r.json()["enquiries"]] == ids

    r = client.get("/api/enquiries", headers=admin_headers, params={"limit": 1, "offset": 1})
    assert [e["id"] for e in r.json()["enquiries"]] == ids[1:2]

    r = client.get("/api/enquiries", headers=admin_headers, params={"status": "CONTACTED"})
    assert r.json()["enquiries"] == []

    r = client.get("/api/enquiries", headers=admin_headers, params={"status": "BOGUS"})
    assert r.status_code == 400


def test_update_status_and_stats(client, admin_headers, submit, enquiry_body):
    ids = _seed(submit, enquiry_body)
    r = client.patch(f"/api/enquiries/{ids[0]}", headers=admin_headers, json={"status": "CONTACTED"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["enquiry"]["status"] == "CONTACTED"

    r = client.patch(f"/api/enquiries/{ids[1]}", headers=admin_headers, json={"status": "CLOSED"})
    assert r.status_code == 200

    r = client.get("/api/enquiries/stats", headers=admin_headers)
    assert r.json() == {"total": 3, "new": 1, "contacted": 1, "closed": 1, "lastWeek": 3}

    r = client.get(f"/api/enquiries/{ids[0]}", headers=admin_headers)
    assert r.json()["enquiry"]["status"] == "CONTACTED"


def test_update_status_rejects_unknown_status(client, admin_headers, submit, enquiry_body):
    ids = _seed(submit, enquiry_body)
    r = client.patch(f"/api/enquiries/{ids[0]}", headers=admin_headers, json={"status": "SPAM"})
    assert r.status_code == 400


def test_missing_enquiry_returns_404(client, admin_headers):
    missing = "00000000-0000-0000-0000-000000000000"
    assert client.get(f"/api/enquiries/{missing}", headers=admin_headers).status_code == 404
    r = client.patch(f"/api/enquiries/{missing}", headers=admin_headers, json={"status": "NEW"})
    assert r.status_code == 404


def test_update_requires_key(client, submit, enquiry_body):
    ids = _seed(submit, enquiry_body)
    r = client.patch(f"/api/enquiries/{ids[0]}", json={"status": "CLOSED"})
    assert r.status_code == 401


def test_pg_enquiries(client, admin_headers, submit, enquiry_body):
    ids = _seed(submit, enquiry_body)
    r = client.get("/api/pgs/pg-1/enquiries", headers=admin_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["pgId"] == "pg-1"
    assert [e["id"] for e in data["enquiries"]] == ids[:2]


def test_pg_enquiries_rejects_bad_id(client, admin_headers):
    r = client.get("/api/pgs/bad.id/enquiries", headers=admin_headers)
    assert r.status_code == 400


def test_update_accepts_query_key(client, admin_secret, submit, enquiry_body):
    ids = _seed(submit, enquiry_body)
    r = client.patch(
        f"/api/enquiries/{ids[0]}", params={"key": admin_secret}, json={"status": "CLOSED"}
    )
    assert r.status_code == 200
    assert r.json()["enquiry"]["status"] == "CLOSED"
