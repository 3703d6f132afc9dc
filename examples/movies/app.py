"""Movies: a schema-driven JSON API that pushes every change to its clients.

The Swagger document in ``api/swagger/swagger.yaml`` declares the
operations; herald validates each request against it before one of the
controller actions below runs. Movies live in the Redis cache, sessions
in MongoDB, and every create/rate/delete is announced on the WebSocket
channel at ``/api/socket``.

Run:
    cd examples/movies && python app.py
or:
    cd examples/movies && herald serve --config config.yaml
"""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import anyio

from herald import AppConfig, Configuration, Context, Request, Response, bootstrap, get_session
from herald.errors import NotFound

HERE = Path(__file__).parent


class Movies:
    """Movie catalogue stored in a cache hash, announcing every change."""

    KEY = "movies"
    COUNTER = "movies:next_id"

    def __init__(self, cache: Any, announce: Any) -> None:
        self._cache = cache
        self._announce = announce

    async def latest(self, *, limit: int, genre: str | None = None) -> list[dict[str, Any]]:
        stored = await self._cache.hgetall(self.KEY)
        movies = [json.loads(raw) for raw in stored.values()]
        if genre is not None:
            movies = [m for m in movies if m.get("genre") == genre]
        movies.sort(key=lambda m: m["id"], reverse=True)
        return movies[:limit]

    async def get(self, movie_id: int) -> dict[str, Any]:
        raw = await self._cache.hget(self.KEY, str(movie_id))
        if raw is None:
            raise NotFound(f"Movie {movie_id} not found")
        return json.loads(raw)

    async def create(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        movie_id = int(await self._cache.incr(self.COUNTER))
        movie = {**fields, "id": movie_id}
        await self._cache.hset(self.KEY, str(movie_id), json.dumps(movie))
        await self._announce("movie:created", movie)
        return movie

    async def rate(self, movie_id: int, stars: int) -> dict[str, Any]:
        movie = await self.get(movie_id)
        movie["rating"] = stars
        await self._cache.hset(self.KEY, str(movie_id), json.dumps(movie))
        await self._announce("movie:rated", {"id": movie_id, "rating": stars})
        return movie

    async def delete(self, movie_id: int) -> None:
        if not await self._cache.hdel(self.KEY, str(movie_id)):
            raise NotFound(f"Movie {movie_id} not found")
        await self._announce("movie:deleted", {"id": movie_id})


# ---------------------------------------------------------------------------
# Services and controllers
# ---------------------------------------------------------------------------

services = {
    "movies": lambda context: Movies(context.cache, context.announce),
}


def controllers(context: Context) -> dict[str, Any]:
    """Controller actions keyed ``Controller_operationId``."""
    movies: Movies = context.services["movies"]

    async def get_movies(request: Request):
        params = request.params
        return await movies.latest(limit=params["limit"], genre=params.get("genre"))

    async def create_movie(request: Request):
        return (await movies.create(request.params["movie"]), 201)

    async def get_movie(request: Request):
        return await movies.get(request.params["movieId"])

    async def rate_movie(request: Request):
        return await movies.rate(request.params["movieId"], request.params["stars"])

    async def delete_movie(request: Request):
        await movies.delete(request.params["movieId"])
        return Response(body="", status=204)

    def count_visits(request: Request):
        session = get_session()
        session["visits"] = session.get("visits", 0) + 1
        return {"visits": session["visits"]}

    return {
        "Movies_getMovies": get_movies,
        "Movies_createMovie": create_movie,
        "Movies_getMovie": get_movie,
        "Movies_rateMovie": rate_movie,
        "Movies_deleteMovie": delete_movie,
        "countVisits": count_visits,
    }


async def main() -> None:
    configuration = Configuration.from_file(HERE / "config.yaml")
    app_config = AppConfig.from_configuration(configuration).anchored(HERE)
    context = await bootstrap(
        configuration,
        app_config=app_config,
        services=services,
        controllers=controllers,
    )
    await context.require(context.transport, "transport").serve()


if __name__ == "__main__":
    anyio.run(main)
