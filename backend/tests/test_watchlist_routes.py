from datetime import timedelta

from cinelog.core.auth import create_access_token


def add(client, headers, movie_id, priority=None):
    body = {"movieId": movie_id}
    if priority:
        body["priority"] = priority
    return client.post("/watchlist", json=body, headers=headers)


class TestAuth:
    def test_missing_token(self, client):
        response = client.get("/watchlist")
        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    def test_expired_token(self, client, users):
        token = create_access_token({"sub": str(users[0].id)}, expires_delta=timedelta(minutes=-1))
        response = client.get("/watchlist", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_session_cookie(self, client, users, headers_for):
        token = headers_for(users[0].id)["Authorization"].split(" ", 1)[1]
        client.cookies.set("session", token)
        assert client.get("/watchlist").status_code == 200


class TestCrud:
    def test_add_returns_201_camel_case(self, client, alice_headers, movies):
        response = add(client, alice_headers, movies[0].id)
        assert response.status_code == 201
        body = response.json()
        assert body["priority"] == "medium"
        assert body["movieId"] == movies[0].id
        assert body["movie"]["title"] == "Inception"
        assert "addedAt" in body

    def test_duplicate_is_400(self, client, alice_headers, movies):
        add(client, alice_headers, movies[0].id)
        response = add(client, alice_headers, movies[0].id)
        assert response.status_code == 400
        assert "already" in response.json()["error"]

    def test_invalid_priority(self, client, alice_headers, movies):
        response = add(client, alice_headers, movies[0].id, "urgent")
        assert response.status_code == 400
        assert response.json()["error"] == "Priority must be low, medium, or high"

    def test_missing_movie_id(self, client, alice_headers):
        response = client.post("/watchlist", json={}, headers=alice_headers)
        assert response.status_code == 400
        assert "movieId" in response.json()["error"]

    def test_forbidden_vs_not_found(self, client, alice_headers, bob_headers, movies):
        entry_id = add(client, alice_headers, movies[0].id).json()["id"]

        assert client.get(f"/watchlist/{entry_id}", headers=bob_headers).status_code == 403
        assert client.delete(f"/watchlist/{entry_id}", headers=bob_headers).status_code == 403
        assert client.get("/watchlist/99999", headers=bob_headers).status_code == 404

    def test_update_priority(self, client, alice_headers, movies):
        entry_id = add(client, alice_headers, movies[0].id).json()["id"]
        response = client.put(f"/watchlist/{entry_id}", json={"priority": "high"}, headers=alice_headers)
        assert response.status_code == 200
        assert response.json()["priority"] == "high"

    def test_delete(self, client, alice_headers, movies):
        entry_id = add(client, alice_headers, movies[0].id).json()["id"]
        assert client.delete(f"/watchlist/{entry_id}", headers=alice_headers).status_code == 200
        assert client.get(f"/watchlist/{entry_id}", headers=alice_headers).status_code == 404


class TestListing:
    def test_pagination_envelope(self, client, alice_headers, movies):
        for movie in movies:
            add(client, alice_headers, movie.id)
        response = client.get("/watchlist?page=2&limit=2", headers=alice_headers)
        body = response.json()
        assert len(body["items"]) == 2
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "totalPages": 3}

    def test_bad_sort_by(self, client, alice_headers):
        response = client.get("/watchlist?sortBy=rating", headers=alice_headers)
        assert response.status_code == 400

    def test_bad_page(self, client, alice_headers):
        assert client.get("/watchlist?page=0", headers=alice_headers).status_code == 400

    def test_bad_limit(self, client, alice_headers):
        response = client.get("/watchlist?limit=0", headers=alice_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Limit must be a positive integer"

    def test_stats_and_movie_status(self, client, alice_headers, movies):
        add(client, alice_headers, movies[0].id, "high")
        stats = client.get("/watchlist/stats", headers=alice_headers).json()
        assert stats["totalItems"] == 1
        assert stats["byPriority"]["high"] == 1

        status = client.get(f"/watchlist/movie/{movies[0].id}", headers=alice_headers).json()
        assert status["inWatchlist"] is True
        status = client.get(f"/watchlist/movie/{movies[1].id}", headers=alice_headers).json()
        assert status == {"inWatchlist": False, "entry": None}


class TestBulkAndReorder:
    def test_reorder(self, client, alice_headers, movies):
        ids = [add(client, alice_headers, m.id).json()["id"] for m in movies[:3]]
        response = client.put(
            "/watchlist/reorder", json={"orderedIds": [ids[2], ids[0], ids[1]]}, headers=alice_headers
        )
        assert response.status_code == 200
        assert [item["id"] for item in response.json()["items"]] == [ids[2], ids[0], ids[1]]

        listed = client.get("/watchlist?sortBy=position&sortOrder=asc", headers=alice_headers).json()
        assert [item["id"] for item in listed["items"]] == [ids[2], ids[0], ids[1]]

    def test_reorder_foreign_entry(self, client, alice_headers, bob_headers, movies):
        mine = add(client, alice_headers, movies[0].id).json()["id"]
        theirs = add(client, bob_headers, movies[1].id).json()["id"]
        response = client.put("/watchlist/reorder", json={"orderedIds": [theirs, mine]}, headers=alice_headers)
        assert response.status_code == 403

    def test_reorder_rejects_non_numeric_ids(self, client, alice_headers):
        response = client.put("/watchlist/reorder", json={"orderedIds": ["a"]}, headers=alice_headers)
        assert response.status_code == 400

    def test_bulk_priority(self, client, alice_headers, movies):
        ids = [add(client, alice_headers, m.id).json()["id"] for m in movies[:2]]
        response = client.put(
            "/watchlist/bulk-priority",
            json={"updates": [{"id": ids[0], "priority": "high"}, {"id": ids[1], "priority": "low"}]},
            headers=alice_headers,
        )
        assert response.status_code == 200
        assert [item["priority"] for item in response.json()] == ["high", "low"]

    def test_bulk_priority_is_atomic(self, client, alice_headers, movies):
        ids = [add(client, alice_headers, m.id).json()["id"] for m in movies[:2]]
        response = client.put(
            "/watchlist/bulk-priority",
            json={"updates": [{"id": ids[0], "priority": "high"}, {"id": ids[1], "priority": "urgent"}]},
            headers=alice_headers,
        )
        assert response.status_code == 400
        assert client.get(f"/watchlist/{ids[0]}", headers=alice_headers).json()["priority"] == "medium"
