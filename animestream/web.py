from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from flask import Flask, jsonify, request
from loguru import logger

from animestream.catalog import CatalogQueryEngine
from animestream.config import Settings
from animestream.errors import CatalogFetchError
from animestream.jikan import JikanClient
from animestream.logs import configure_logging
from animestream.overrides import StreamOverrides
from animestream.resolver import StreamResolver

NOT_AVAILABLE = "Video not available for this episode"


def catalog_error(e: CatalogFetchError):
    return jsonify({"error": str(e), "retryable": True}), 502


def bad_request(message: str):
    return jsonify({"error": message}), 400


def json_body(default=None):
    """The request's JSON object, ``default`` when there is no body, ``None`` when it isn't an object."""
    data = request.get_json(silent=True)
    if data is None:
        return default
    return data if isinstance(data, dict) else None


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[JikanClient] = None,
    resolver: Optional[StreamResolver] = None,
) -> Flask:
    settings = settings or Settings.from_env()
    client = client or JikanClient(settings)
    resolver = resolver or StreamResolver(settings, overrides=StreamOverrides.load(settings.overrides_file))
    engine = CatalogQueryEngine(client, settings)

    app = Flask(__name__)
    app.config["ENGINE"] = engine
    app.config["RESOLVER"] = resolver

    def catalog_view():
        return jsonify(asdict(engine.snapshot()))

    @app.route("/api/catalog")
    def catalog():
        if not engine.loaded and engine.error is None:
            engine.refresh()
        return catalog_view()

    @app.route("/api/catalog/next", methods=["POST"])
    def next_page():
        engine.next_page()
        return catalog_view()

    @app.route("/api/catalog/previous", methods=["POST"])
    def previous_page():
        engine.previous_page()
        return catalog_view()

    @app.route("/api/catalog/retry", methods=["POST"])
    def retry():
        engine.retry()
        return catalog_view()

    @app.route("/api/catalog/genre", methods=["POST"])
    def genre():
        data = json_body(default={})
        if data is None:
            return bad_request("Expected a JSON object")
        genre_id = data.get("genre_id")
        if genre_id is not None:
            try:
                genre_id = int(genre_id)
            except (TypeError, ValueError):
                return bad_request("genre_id must be an integer or null")
        engine.set_genre(genre_id)
        return catalog_view()

    @app.route("/api/catalog/query", methods=["POST"])
    def query():
        data = json_body(default={})
        if data is None:
            return bad_request("Expected a JSON object")
        text = data.get("text") or ""
        if not isinstance(text, str):
            return bad_request("text must be a string")
        if data.get("submit"):
            engine.query_submitted(text)
        else:
            engine.query_text_changed(text)
        return catalog_view()

    @app.route("/api/genres")
    def genres():
        try:
            items = engine.load_genres()
        except CatalogFetchError as e:
            return catalog_error(e)
        return jsonify([{"id": None, "name": "All"}] + [asdict(g) for g in items])

    @app.route("/api/anime/<int:anime_id>/episodes")
    def episodes(anime_id):
        try:
            items = client.episodes(anime_id)
        except CatalogFetchError as e:
            return catalog_error(e)
        return jsonify([asdict(ep) for ep in items])

    @app.route("/api/resolve", methods=["POST"])
    def resolve():
        data = json_body()
        if not data:
            return bad_request("No data provided")

        slug = data.get("slug") or ""
        if not isinstance(slug, str):
            return bad_request("slug must be a string")
        slug = slug.strip()
        anime_id = data.get("anime_id")
        try:
            episode = int(data.get("episode"))
            anime_id = int(anime_id) if anime_id is not None else None
        except (TypeError, ValueError):
            return bad_request("episode and anime_id must be integers")

        if not slug and (anime_id is None or anime_id not in resolver.overrides):
            return jsonify({"error": "Episodes not available for this title"}), 404

        try:
            stream = resolver.resolve(slug, episode, anime_id=anime_id)
        except ValueError as e:
            return bad_request(str(e))

        if stream:
            return jsonify(asdict(stream))
        return jsonify({"error": NOT_AVAILABLE}), 404

    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    logger.info("[Web] starting on 0.0.0.0:5000")
    # Disable debug mode for security in production-like environment
    create_app(settings).run(debug=False, host="0.0.0.0", port=5000)
