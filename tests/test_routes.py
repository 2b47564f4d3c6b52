def post_edges(client, *edges):
    payload = {
        "edges": [
            {"subject_kind": sk, "subject_id": sid, "relation": rel, "object_kind": ok, "object_id": oid}
            for sk, sid, rel, ok, oid in edges
        ]
    }
    return client.post("/relations", json=payload)


EXAMPLE_EDGES = [
    ("resource", "R1", "resource-org", "organization", "O1"),
    ("resource", "R2", "resource-org", "organization", "O1"),
    ("user", "U1", "org-admin", "organization", "O1"),
    ("user", "U2", "resource-viewer-user", "resource", "R1"),
]


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["status"] == "online"


def test_dataset_of_empty_database(client):
    response = client.get("/dataset")

    assert response.status_code == 200
    body = response.json()
    assert body["direct_manager_pairs"] == []
    assert body["org_admin_pairs"] == []
    assert body["group_view_pairs"] == []
    assert body["heavy_manage_user"] is None
    assert body["regular_view_user"] is None


def test_dataset_from_posted_edges(client):
    response = post_edges(client, *EXAMPLE_EDGES)
    assert response.status_code == 201
    assert response.json()["records_inserted"] == 4

    body = client.get("/dataset").json()

    assert body["org_admin_pairs"] == [
        {"resource_id": "R1", "user_id": "U1"},
        {"resource_id": "R2", "user_id": "U1"},
    ]
    assert body["heavy_manage_user"] == "U1"
    assert body["regular_view_user"] == "U2"


def test_dataset_query_overrides(client):
    post_edges(client, *EXAMPLE_EDGES)

    body = client.get("/dataset", params={"manage_user": "forced"}).json()

    assert body["heavy_manage_user"] == "forced"
    assert body["regular_view_user"] == "U2"


def test_user_access_counts(client):
    post_edges(client, *EXAMPLE_EDGES)

    response = client.get("/dataset/users/U1")

    assert response.status_code == 200
    assert response.json() == {"user_id": "U1", "manage_count": 2, "view_count": 2}
    assert client.get("/dataset/users/nobody").status_code == 404


def test_edge_with_wrong_endpoint_kinds_is_rejected(client):
    response = post_edges(client, ("group", "G1", "org-admin", "organization", "O1"))

    assert response.status_code == 400


def test_unknown_relation_is_rejected(client):
    response = post_edges(client, ("user", "U1", "owner", "resource", "R1"))

    assert response.status_code == 400


def test_csv_import_reports_bad_rows(client):
    content = (
        "subject_kind,subject_id,relation,object_kind,object_id\n"
        "resource,R1,resource-org,organization,O1\n"
        "user,U1,org-admin,organization,O1\n"
        "user,U1,owner,resource,R1\n"
    )
    response = client.post("/relations/csv", files={"file": ("relations.csv", content, "text/csv")})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "partial"
    assert body["records_inserted"] == 2
    assert body["records_failed"] == 1
    assert body["errors"][0]["row_number"] == 4

    summary = client.get("/relations/summary").json()
    assert summary["total_edges"] == 2
    assert summary["edge_counts"]["org-admin"] == 1


def test_csv_import_requires_csv_file(client):
    response = client.post("/relations/csv", files={"file": ("relations.txt", "x", "text/plain")})

    assert response.status_code == 400


def test_csv_import_requires_tuple_columns(client):
    response = client.post("/relations/csv", files={"file": ("relations.csv", "a,b\n1,2\n", "text/csv")})

    assert response.status_code == 400
    assert "subject_kind" in response.json()["detail"]


def test_relation_summary_fanouts(client):
    post_edges(client, *EXAMPLE_EDGES)

    body = client.get("/relations/summary").json()
    fanout = {item["name"]: item for item in body["fanout"]}

    assert body["total_edges"] == 4
    assert fanout["org->users"]["node_count"] == 1
    assert fanout["resource->users"]["most"] == [{"node_id": "R1", "count": 1}]


def test_ingestion_failure_maps_to_bad_gateway(client):
    from accessgraph.features.relations.dependencies import get_relation_store
    from accessgraph.features.relations.store import IngestionError

    async def failing_store():
        raise IngestionError("upstream down")

    client.app.dependency_overrides[get_relation_store] = failing_store
    try:
        response = client.get("/dataset")
    finally:
        client.app.dependency_overrides.pop(get_relation_store, None)

    assert response.status_code == 502
    assert response.json() == {"error": "Relation ingestion failed: upstream down"}
