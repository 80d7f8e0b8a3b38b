def watch(client, headers, movie_id, watched_at="2024-05-01T20:00:00", **extra):
    return client.post("/watch-history", json={"movieId": movie_id, "watchedAt": watched_at, **extra}, headers=headers)


class TestWatchHistoryRoutes:
    def test_requires_auth(self, client):
        assert client.get("/watch-history").status_code == 401

    def test_create_then_rewatch(self, client, alice_headers, movies):
        created = watch(client, alice_headers, movies[0].id, rating=8)
        assert created.status_code == 201
        assert created.json()["rewatchCount"] == 0

        rewatched = watch(client, alice_headers, movies[0].id, watched_at="2024-06-01T20:00:00")
        assert rewatched.status_code == 200
        assert rewatched.json()["rewatchCount"] == 1
        assert rewatched.json()["id"] == created.json()["id"]

    def test_rating_out_of_range(self, client, alice_headers, movies):
        for rating in (0, 11):
            response = watch(client, alice_headers, movies[0].id, rating=rating)
            assert response.status_code == 400
            assert response.json()["error"] == "Rating must be between 1 and 10"

    def test_rating_bounds_accepted(self, client, alice_headers, movies):
        assert watch(client, alice_headers, movies[0].id, rating=1).status_code == 201
        assert watch(client, alice_headers, movies[1].id, rating=10).status_code == 201

    def test_missing_watched_at(self, client, alice_headers, movies):
        response = client.post("/watch-history", json={"movieId": movies[0].id}, headers=alice_headers)
        assert response.status_code == 400

    def test_update_partial(self, client, alice_headers, movies):
        entry_id = watch(client, alice_headers, movies[0].id, rating=5, notes="ok").json()["id"]
        response = client.put(f"/watch-history/{entry_id}", json={"notes": "better second time"}, headers=alice_headers)
        assert response.status_code == 200
        assert response.json()["rating"] == 5
        assert response.json()["notes"] == "better second time"

    def test_other_user_forbidden(self, client, alice_headers, bob_headers, movies):
        entry_id = watch(client, alice_headers, movies[0].id).json()["id"]
        assert client.get(f"/watch-history/{entry_id}", headers=bob_headers).status_code == 403
        assert client.put(f"/watch-history/{entry_id}", json={"rating": 3}, headers=bob_headers).status_code == 403
        assert client.delete(f"/watch-history/{entry_id}", headers=bob_headers).status_code == 403

    def test_list_filters(self, client, alice_headers, movies):
        watch(client, alice_headers, movies[0].id, watched_at="2023-03-01T10:00:00", rating=9)
        watch(client, alice_headers, movies[1].id, watched_at="2024-03-01T10:00:00", rating=7)

        body = client.get("/watch-history?year=2024", headers=alice_headers).json()
        assert body["pagination"]["total"] == 1
        assert body["items"][0]["movieId"] == movies[1].id

        body = client.get("/watch-history?sortBy=rating&sortOrder=desc", headers=alice_headers).json()
        assert [item["rating"] for item in body["items"]] == [9, 7]

    def test_stats(self, client, alice_headers, movies):
        watch(client, alice_headers, movies[0].id, rating=6)
        watch(client, alice_headers, movies[1].id, rating=8)
        stats = client.get("/watch-history/stats", headers=alice_headers).json()
        assert stats["totalWatched"] == 2
        assert stats["averageRating"] == 7

    def test_zero_page_and_limit_rejected(self, client, alice_headers):
        assert client.get("/watch-history?page=0", headers=alice_headers).status_code == 400
        assert client.get("/watch-history?limit=0", headers=alice_headers).status_code == 400

    def test_year_out_of_range(self, client, alice_headers, movies):
        watch(client, alice_headers, movies[0].id)
        for year in (0, 9999):
            response = client.get(f"/watch-history?year={year}", headers=alice_headers)
            assert response.status_code == 400
            assert response.json()["error"] == "Year must be between 1 and 9998"
