from datetime import datetime, timedelta, timezone
from urllib.parse import quote

from jose import jwt

from radiocalico import config
from radiocalico.database import engine
from radiocalico.models.rating_model import Rating


def _rating_url(title: str, artist: str) -> str:
    return f"/api/ratings/{quote(title, safe='')}/{quote(artist, safe='')}"


async def test_submit_requires_token(client):
    res = await client.post("/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy", "rating": 1})

    assert res.status_code == 401
    assert res.json() == {"error": "Access token required"}


async def test_submit_rejects_bad_token(client):
    res = await client.post(
        "/api/ratings",
        json={"songTitle": "Ode", "songArtist": "Joy", "rating": 1},
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert res.status_code == 401
    assert res.json() == {"error": "Invalid or expired token"}


async def test_submit_returns_label(client, auth_headers):
    headers = auth_headers(1)

    up = await client.post(
        "/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy", "rating": 1}, headers=headers
    )
    down = await client.post(
        "/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy", "rating": -1}, headers=headers
    )

    assert up.status_code == 200
    assert up.json() == {"message": "Rating submitted successfully", "rating": "thumbs_up"}
    assert down.json()["rating"] == "thumbs_down"


async def test_submit_accepts_snake_case_fields(client, auth_headers):
    res = await client.post(
        "/api/ratings",
        json={"song_title": "Ode", "song_artist": "Joy", "rating": -1},
        headers=auth_headers(1),
    )

    assert res.status_code == 200
    assert res.json()["rating"] == "thumbs_down"


async def test_submit_validation_errors_are_400(client, auth_headers):
    headers = auth_headers(1)
    bad_bodies = [
        {"songTitle": "Ode", "songArtist": "Joy", "rating": 0},
        {"songTitle": "Ode", "songArtist": "Joy", "rating": 2},
        {"songTitle": "Ode", "songArtist": "Joy", "rating": "1"},
        {"songTitle": "", "songArtist": "Joy", "rating": 1},
        {"songArtist": "Joy", "rating": 1},
        {"songTitle": "Ode", "songArtist": "Joy"},
    ]
    for body in bad_bodies:
        res = await client.post("/api/ratings", json=body, headers=headers)
        assert res.status_code == 400, body
        assert "error" in res.json()

    agg = await client.get(_rating_url("Ode", "Joy"))
    assert agg.json() == {"thumbsUp": 0, "thumbsDown": 0, "totalRatings": 0}


async def test_aggregate_for_anonymous_caller_has_no_user_rating(client, auth_headers):
    await client.post(
        "/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy", "rating": 1}, headers=auth_headers(1)
    )

    res = await client.get(_rating_url("Ode", "Joy"))

    assert res.status_code == 200
    assert res.json() == {"thumbsUp": 1, "thumbsDown": 0, "totalRatings": 1}


async def test_aggregate_includes_callers_rating(client, auth_headers):
    await client.post(
        "/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy", "rating": -1}, headers=auth_headers(1)
    )

    mine = await client.get(_rating_url("Ode", "Joy"), headers=auth_headers(1))
    theirs = await client.get(_rating_url("Ode", "Joy"), headers=auth_headers(2))

    assert mine.json() == {"thumbsUp": 0, "thumbsDown": 1, "totalRatings": 1, "userRating": -1}
    assert theirs.json() == {"thumbsUp": 0, "thumbsDown": 1, "totalRatings": 1, "userRating": None}


async def test_aggregate_with_invalid_token_is_treated_as_anonymous(client):
    res = await client.get(_rating_url("Ode", "Joy"), headers={"Authorization": "Bearer garbage"})

    assert res.status_code == 200
    assert res.json() == {"thumbsUp": 0, "thumbsDown": 0, "totalRatings": 0}


async def test_aggregate_decodes_percent_encoded_path(client, auth_headers):
    title, artist = "Sweet Child O' Mine", "Guns N' Roses & Friends"
    await client.post(
        "/api/ratings", json={"songTitle": title, "songArtist": artist, "rating": 1}, headers=auth_headers(1)
    )

    res = await client.get(_rating_url(title, artist))

    assert res.json()["thumbsUp"] == 1


async def test_unknown_song_is_zero_not_404(client):
    res = await client.get(_rating_url("Never Rated", "Nobody"))

    assert res.status_code == 200
    assert res.json() == {"thumbsUp": 0, "thumbsDown": 0, "totalRatings": 0}


async def test_my_ratings_lists_newest_first(client, auth_headers):
    headers = auth_headers(1)
    for title, value in [("First", 1), ("Second", -1)]:
        await client.post(
            "/api/ratings", json={"songTitle": title, "songArtist": "Band", "rating": value}, headers=headers
        )
    await client.post(
        "/api/ratings", json={"songTitle": "Elsewhere", "songArtist": "Band", "rating": 1}, headers=auth_headers(2)
    )

    res = await client.get("/api/ratings/mine", headers=headers)
    alias = await client.get("/api/ratings/my", headers=headers)

    assert res.status_code == 200
    body = res.json()
    assert [(r["songTitle"], r["rating"]) for r in body] == [("Second", -1), ("First", 1)]
    assert set(body[0]) == {"songTitle", "songArtist", "rating", "submittedAt", "createdAt"}
    assert alias.json() == body


async def test_my_ratings_requires_token(client):
    res = await client.get("/api/ratings/mine")

    assert res.status_code == 401


async def test_delete_rating_then_not_found(client, auth_headers):
    headers = auth_headers(1)
    await client.post(
        "/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy", "rating": 1}, headers=headers
    )

    first = await client.request(
        "DELETE", "/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy"}, headers=headers
    )
    second = await client.request(
        "DELETE", "/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy"}, headers=headers
    )

    assert first.status_code == 200
    assert first.json() == {"message": "Rating deleted successfully"}
    assert second.status_code == 404
    assert second.json() == {"error": "Rating not found"}


async def test_delete_requires_fields_and_token(client, auth_headers):
    missing = await client.request("DELETE", "/api/ratings", json={"songTitle": "Ode"}, headers=auth_headers(1))
    anonymous = await client.request("DELETE", "/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy"})

    assert missing.status_code == 400
    assert anonymous.status_code == 401


async def test_rating_flow_across_users(client, register):
    _, alice = await register("alice")
    _, bob = await register("bob")
    url = _rating_url("Ode", "Joy")

    await client.post("/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy", "rating": 1}, headers=alice)
    res = await client.get(url, headers=alice)
    assert res.json() == {"thumbsUp": 1, "thumbsDown": 0, "totalRatings": 1, "userRating": 1}

    await client.post("/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy", "rating": -1}, headers=bob)
    res = await client.get(url)
    assert res.json() == {"thumbsUp": 1, "thumbsDown": 1, "totalRatings": 2}

    await client.post("/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy", "rating": -1}, headers=alice)
    res = await client.get(url, headers=alice)
    assert res.json() == {"thumbsUp": 0, "thumbsDown": 2, "totalRatings": 2, "userRating": -1}


async def test_store_failures_surface_as_500_error_bodies(client, auth_headers):
    headers = auth_headers(1)
    async with engine.begin() as conn:
        await conn.run_sync(Rating.__table__.drop)

    submit = await client.post(
        "/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy", "rating": 1}, headers=headers
    )
    aggregate = await client.get(_rating_url("Ode", "Joy"), headers=headers)
    mine = await client.get("/api/ratings/mine", headers=headers)
    removed = await client.request(
        "DELETE", "/api/ratings", json={"songTitle": "Ode", "songArtist": "Joy"}, headers=headers
    )

    assert submit.status_code == 500
    assert submit.json() == {"error": "Database error while saving rating"}
    assert aggregate.status_code == 500
    assert aggregate.json() == {"error": "Database error while reading ratings"}
    assert mine.status_code == 500
    assert mine.json() == {"error": "Database error while reading ratings"}
    assert removed.status_code == 500
    assert removed.json() == {"error": "Database error while deleting rating"}


async def test_token_with_non_scalar_user_id(client):
    token = jwt.encode(
        {"id": {"x": 1}, "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        config.SECRET_KEY,
        algorithm=config.ALGORITHM,
    )
    headers = {"Authorization": f"Bearer {token}"}

    mine = await client.get("/api/ratings/mine", headers=headers)
    aggregate = await client.get(_rating_url("Ode", "Joy"), headers=headers)

    assert mine.status_code == 401
    assert mine.json() == {"error": "Invalid or expired token"}
    assert aggregate.status_code == 200
    assert "userRating" not in aggregate.json()


async def test_submit_rejects_nul_characters(client, auth_headers):
    res = await client.post(
        "/api/ratings",
        json={"songTitle": "Ode\u0000", "songArtist": "Joy", "rating": 1},
        headers=auth_headers(1),
    )

    assert res.status_code == 400
    assert res.json() == {"error": "song_title must not contain NUL characters"}
