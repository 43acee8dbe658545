"""
API tests for assets, reports, customers and admin endpoints.
"""


GLOVE_FORM = {
    "job_id": "job-17",
    "user_id": "tech-1",
    "customer_id": "cust-uuid",
    "customer_code": "42",
    "status": "PASS",
    "report_info": {"manufacturer": "Salisbury"},
}


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_next_asset_id_preview(client):
    first = client.get("/api/assets/next-id", params={"customer_id": "42"})
    second = client.get("/api/assets/next-id", params={"customer_id": "42"})

    assert first.json() == {"customer_id": "42", "asset_id": "42-1"}
    assert second.json()["asset_id"] == "42-1"


def test_next_asset_id_for_uuid(client):
    response = client.get("/api/assets/next-id", params={"customer_id": "a1b2-c3"})

    assert response.json()["asset_id"] == "1-1"


def test_next_asset_id_without_customer(client):
    response = client.get("/api/assets/next-id")

    assert response.status_code == 200
    assert response.json()["asset_id"] == "-1"


def test_create_and_list_assets(client):
    for name in ["Gloves", "Sleeves"]:
        response = client.post("/api/assets/", json={
            "job_id": "job-1",
            "name": name,
            "file_url": f"report:/{name}",
            "user_id": "tech-1",
            "customer_id_for_asset": "8",
        })
        assert response.status_code == 200

    listed = client.get("/api/assets/", params={"customer_code": "8"}).json()

    assert sorted(a["asset_id"] for a in listed) == ["8-1", "8-2"]


def test_soft_delete_and_restore(client):
    created = client.post("/api/assets/", json={
        "job_id": "job-1", "name": "Hose", "file_url": "report:/hose",
        "customer_id_for_asset": "8",
    }).json()

    assert client.delete(f"/api/assets/{created['id']}").status_code == 200
    assert client.get("/api/assets/").json() == []
    deleted = client.get("/api/assets/deleted").json()
    assert [a["asset_id"] for a in deleted] == ["8-1"]

    # Deleted numbers are not handed out again
    assert client.get("/api/assets/next-id",
                      params={"customer_id": "8"}).json()["asset_id"] == "8-2"

    restored = client.post(f"/api/assets/{created['id']}/restore")
    assert restored.status_code == 200
    assert restored.json()["deleted_at"] is None


def test_missing_asset(client):
    assert client.get("/api/assets/999").status_code == 404
    assert client.delete("/api/assets/999").status_code == 404
    assert client.post("/api/assets/999/restore").status_code == 404


def test_save_report_and_history(client):
    response = client.post("/api/reports/gloves", json=GLOVE_FORM)

    assert response.status_code == 200
    body = response.json()
    assert body["asset_id"] == "42-1"
    assert body["warnings"] == []

    report_id = body["report_id"]
    history = client.post(f"/api/reports/{report_id}/test-history", json={
        "test_result": "FAIL",
        "tested_by": "tech-2",
        "test_notes": "Retest after cleaning",
    })
    assert history.status_code == 200

    entries = client.get(f"/api/reports/{report_id}/test-history").json()
    assert [e["test_result"] for e in entries] == ["FAIL", "PASS"]


def test_update_report(client):
    report_id = client.post("/api/reports/sleeve", json=GLOVE_FORM).json()["report_id"]

    response = client.put(f"/api/reports/sleeve/{report_id}",
                          json={**GLOVE_FORM, "status": "FAIL"})

    assert response.status_code == 200
    assert response.json()["created"] is False
    assert client.get(f"/api/reports/{report_id}").json()["status"] == "FAIL"


def test_unknown_report(client):
    assert client.get("/api/reports/999").status_code == 404
    assert client.put("/api/reports/gloves/999", json=GLOVE_FORM).status_code == 404
    assert client.post("/api/reports/999/test-history", json={
        "test_result": "PASS", "tested_by": "tech-1"}).status_code == 404


def test_unknown_report_type(client):
    assert client.post("/api/reports/toaster", json=GLOVE_FORM).status_code == 422


def test_customer_codes(client):
    created = client.post("/api/customers/", json={"name": "Metro Electric"})
    assert created.status_code == 200
    assert created.json()["customer_code"] == "1"

    rejected = client.post("/api/customers/", json={
        "name": "Bad Code", "customer_code": "CUST-0001"})
    assert rejected.status_code == 400

    duplicate = client.post("/api/customers/", json={
        "name": "Other", "customer_code": "1"})
    assert duplicate.status_code == 400


def test_customer_assets(client):
    customer = client.post("/api/customers/", json={
        "name": "Metro Electric", "customer_code": "42"}).json()
    client.post("/api/reports/gloves", json=GLOVE_FORM)

    detail = client.get(f"/api/customers/{customer['id']}").json()
    assets = client.get(f"/api/customers/{customer['id']}/assets").json()

    assert detail["asset_stats"]["total"] == 1
    assert [a["asset_id"] for a in assets] == ["42-1"]


def test_asset_counters(client):
    client.get("/api/assets/next-id", params={"customer_id": "42"})

    counters = client.get("/api/admin/asset-counters").json()
    assert counters[0]["customer_id"] == "42"
    assert counters[0]["next_counter"] == 2
    assert client.get("/api/admin/asset-counters/77").status_code == 404


def test_system_health(client):
    health = client.get("/api/admin/system/health").json()

    assert health["overall"] == "healthy"
    assert health["services"]["sqlite"]["reports"] == 0


def test_generated_customer_code_skips_hand_entered_codes(client):
    manual = client.post("/api/customers/", json={
        "name": "Metro Electric", "customer_code": "2"})
    assert manual.status_code == 200
    client.post("/api/customers/", json={"name": "Lettered", "customer_code": "ACME"})

    generated = client.post("/api/customers/", json={"name": "County Utilities"})

    assert generated.status_code == 200
    assert generated.json()["customer_code"] == "3"
    assert isinstance(generated.json()["id"], int)


def test_customer_code_filter_is_exact(client):
    for code in ["42", "A"]:
        client.post("/api/assets/", json={
            "job_id": "job-1", "name": "Gloves", "file_url": "report:/gloves",
            "customer_id_for_asset": code,
        })

    def listed(code):
        return [a["asset_id"] for a in
                client.get("/api/assets/", params={"customer_code": code}).json()]

    assert listed("4_") == []
    assert listed("a") == []
    assert listed("A") == ["A-1"]

    customer = client.post("/api/customers/", json={
        "name": "Underscore", "customer_code": "4_"}).json()
    assert client.get(f"/api/customers/{customer['id']}/assets").json() == []
    detail = client.get(f"/api/customers/{customer['id']}").json()
    assert detail["asset_stats"]["total"] == 0


def test_test_history_of_unknown_report(client):
    assert client.get("/api/reports/999/test-history").status_code == 404


def test_update_with_wrong_report_type(client):
    report_id = client.post("/api/reports/gloves", json=GLOVE_FORM).json()["report_id"]

    response = client.put(f"/api/reports/sleeve/{report_id}",
                          json={**GLOVE_FORM, "status": "FAIL"})

    assert response.status_code == 404
    assert client.get(f"/api/reports/{report_id}").json()["status"] == "PASS"


def test_asset_testing_history(client):
    asset = client.post("/api/reports/gloves", json=GLOVE_FORM).json()["asset"]

    created = client.post(f"/api/asset-testing/assets/{asset['id']}/history", json={
        "test_date": "2026-03-01T09:00:00",
        "test_type": "dielectric",
        "pass_fail_status": "PASS",
        "condition_rating": 8.5,
        "performed_by": "tech-1",
    })
    assert created.status_code == 200
    record_id = created.json()["id"]

    updated = client.put(f"/api/asset-testing/records/{record_id}",
                         json={"pass_fail_status": "CONDITIONAL"})
    assert updated.json()["pass_fail_status"] == "CONDITIONAL"

    stats = client.get(f"/api/asset-testing/assets/{asset['id']}/stats").json()
    assert stats["total_tests"] == 1
    assert stats["average_condition_rating"] == 8.5

    job_assets = client.get("/api/asset-testing/jobs/job-17/assets").json()
    assert job_assets[0]["asset_id"] == "42-1"
    assert job_assets[0]["latest_pass_fail"] == "CONDITIONAL"

    summary = client.get("/api/asset-testing/summary",
                         params={"asset_row_ids": [asset["id"]]}).json()
    assert summary[str(asset["id"])]["total_tests"] == 1

    found = client.post("/api/asset-testing/search",
                        json={"pass_fail_status": "CONDITIONAL"}).json()
    assert [r["id"] for r in found] == [record_id]

    assert client.delete(f"/api/asset-testing/records/{record_id}").status_code == 200
    assert client.delete(f"/api/asset-testing/records/{record_id}").status_code == 404
    assert client.get(f"/api/asset-testing/assets/{asset['id']}/history").json() == []


def test_asset_testing_unknown_asset(client):
    assert client.get("/api/asset-testing/assets/999/history").status_code == 404
    assert client.post("/api/asset-testing/assets/999/history", json={
        "pass_fail_status": "PASS", "performed_by": "tech-1"}).status_code == 404
    assert client.put("/api/asset-testing/records/999",
                      json={"notes": "x"}).status_code == 404
