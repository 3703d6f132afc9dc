"""Movies example: validated CRUD over the cache, changes pushed to the channel."""

from herald import Context
from herald.testing import TestClient

DUNE = {"title": "Dune", "year": 2021, "genre": "drama"}
FORM = {"content-type": "application/x-www-form-urlencoded"}


class TestMovies:
    async def test_create_then_list(self, example_context: Context) -> None:
        async with TestClient(example_context.transport) as client:
            created = await client.post("/api/movies", json=DUNE)
            assert created.status == 201
            assert created.json_body() == {**DUNE, "id": 1}

            await client.post("/api/movies", json={"title": "Up", "year": 2009, "genre": "animation"})
            listing = (await client.get("/api/movies")).json_body()
            assert [movie["id"] for movie in listing] == [2, 1]

            dramas = (await client.get("/api/movies?genre=drama")).json_body()
            assert [movie["title"] for movie in dramas] == ["Dune"]

    async def test_invalid_movie_never_stored(self, example_context: Context) -> None:
        async with TestClient(example_context.transport) as client:
            response = await client.post("/api/movies", json={"title": "", "year": 1700})
            assert response.json_body() == {"error": True}
            assert (await client.get("/api/movies")).json_body() == []

    async def test_unknown_genre_rejected(self, example_context: Context) -> None:
        async with TestClient(example_context.transport) as client:
            response = await client.get("/api/movies?genre=western")
            assert response.json_body() == {"error": True}

    async def test_get_missing_movie_is_404(self, example_context: Context) -> None:
        async with TestClient(example_context.transport) as client:
            response = await client.get("/api/movies/42")
            assert response.status == 404
            assert response.text == "Movie 42 not found"

    async def test_rate_and_delete(self, example_context: Context) -> None:
        async with TestClient(example_context.transport) as client:
            await client.post("/api/movies", json=DUNE)
            rated = await client.put("/api/movies/1/rating", body=b"stars=4", headers=FORM)
            assert rated.json_body()["rating"] == 4

            too_many = await client.put("/api/movies/1/rating", body=b"stars=9", headers=FORM)
            assert too_many.json_body() == {"error": True}

            deleted = await client.delete("/api/movies/1")
            assert deleted.status == 204
            assert (await client.delete("/api/movies/1")).status == 404

    async def test_changes_are_announced(self, example_context: Context) -> None:
        async with TestClient(example_context.transport) as client:
            async with client.websocket("/api/socket") as ws:
                await client.post("/api/movies", json=DUNE)
                assert await ws.receive_json() == ["movie:created", {**DUNE, "id": 1}]

                await client.delete("/api/movies/1")
                assert await ws.receive_json() == ["movie:deleted", {"id": 1}]

    async def test_visits_counted_per_session(self, example_context: Context) -> None:
        async with TestClient(example_context.transport, scheme="https") as client:
            assert (await client.get("/api/visits")).json_body() == {"visits": 1}
            assert (await client.get("/api/visits")).json_body() == {"visits": 2}

    async def test_home_page_and_docs(self, example_context: Context) -> None:
        async with TestClient(example_context.transport) as client:
            assert "<h1>Movies</h1>" in (await client.get("/")).text
            docs = (await client.get("/api/api-docs")).json_body()
            assert docs["basePath"] == "/api"
            assert docs["info"]["title"] == "Movies API"
