from app.models.game import Game
from app.models.rating import Rating
from app.utils.cache import GAMES_ALL_KEY, game_key

from conftest import create_game


def post_game(client, headers, **fields):
    payload = {"title": "New Game", **fields}
    return client.post("/api/admin/games", json=payload, headers=headers)


class TestCreateGame:

    def test_create_returns_payload_with_zero_aggregate(self, client, admin, admin_headers):
        response = post_game(
            client, admin_headers,
            title="  Hollow Path  ",
            description="Metroidvania",
            genre="Action",
            platform="PC",
            releaseDate="2024-02-01",
            imageUrl="https://img.example.com/cover.png",
            gameMode="both",
        )

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Hollow Path"
        assert body["release_date"] == "2024-02-01"
        assert body["game_mode"] == "both"
        assert body["average_rating"] == 0
        assert body["rating_count"] == 0
        assert body["created_by"] == admin.id
        assert body["created_by_name"] == "Admin"

    def test_defaults_and_blank_fields(self, client, db_session, admin_headers):
        response = post_game(client, admin_headers, description="", genre="   ", imageUrl="", trailerUrl="")

        assert response.status_code == 201
        body = response.json()
        assert body["game_mode"] == "solo"
        assert body["description"] is None
        assert body["genre"] is None
        assert body["image_url"] is None
        assert body["trailer_url"] is None

    def test_trailer_links_become_embed_urls(self, client, admin_headers):
        watch = post_game(client, admin_headers, trailerUrl="https://www.youtube.com/watch?v=c0i88t0Kacs&t=5")
        short = post_game(client, admin_headers, trailerUrl="https://youtu.be/c0i88t0Kacs")
        embed = post_game(client, admin_headers, trailerUrl="https://www.youtube.com/embed/c0i88t0Kacs")

        for response in (watch, short, embed):
            assert response.status_code == 201
            assert response.json()["trailer_url"] == "https://www.youtube.com/embed/c0i88t0Kacs"

    def test_inline_image_accepted_up_to_limit(self, client, admin_headers):
        small = "data:image/png;base64," + "A" * 100
        response = post_game(client, admin_headers, imageUrl=small)

        assert response.status_code == 201
        assert response.json()["image_url"] == small

    def test_inline_image_too_large(self, client, admin_headers):
        huge = "data:image/png;base64," + "A" * 5_000_000

        response = post_game(client, admin_headers, imageUrl=huge)

        assert response.status_code == 400
        assert response.json()["detail"] == "imageUrl: Image too large (max 5MB)"

    def test_validation_errors(self, client, admin_headers):
        assert post_game(client, admin_headers, title="   ").status_code == 400
        assert post_game(client, admin_headers, title="x" * 256).status_code == 400
        assert post_game(client, admin_headers, imageUrl="ftp://example.com/a.png").status_code == 400
        assert post_game(client, admin_headers, trailerUrl="not a url").status_code == 400
        assert post_game(client, admin_headers, releaseDate="01/02/2024").status_code == 400
        assert post_game(client, admin_headers, gameMode="co-op").status_code == 400

    def test_requires_authentication(self, client):
        response = post_game(client, {})

        assert response.status_code == 401

    def test_create_projects_into_graph_and_drops_listing(self, client, stores, graph, admin_headers):
        stores.cache.set(GAMES_ALL_KEY, "[]")

        body = post_game(client, admin_headers, title="Graph Me", genre="Puzzle").json()

        assert graph.games[body["id"]] == {"title": "Graph Me", "genre": "Puzzle"}
        assert stores.cache.get(GAMES_ALL_KEY) is None
        assert "Graph Me" in client.get("/api/games").text


class TestUpdateGame:

    def test_partial_update_touches_only_sent_fields(self, client, db_session, admin_headers):
        game = create_game(db_session, title="Old", genre="RPG", platform="PC", game_mode="multiplayer")

        response = client.put(f"/api/admin/games/{game.id}", json={"title": "New"}, headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "New"
        assert body["genre"] == "RPG"
        assert body["platform"] == "PC"
        assert body["game_mode"] == "multiplayer"

    def test_null_game_mode_resets_to_solo(self, client, db_session, admin_headers):
        game = create_game(db_session, game_mode="both")

        response = client.put(f"/api/admin/games/{game.id}", json={"gameMode": None}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["game_mode"] == "solo"

    def test_blank_field_clears_it(self, client, db_session, admin_headers):
        game = create_game(db_session, genre="RPG")

        response = client.put(f"/api/admin/games/{game.id}", json={"genre": ""}, headers=admin_headers)

        assert response.json()["genre"] is None

    def test_empty_body(self, client, db_session, admin_headers):
        game = create_game(db_session)

        response = client.put(f"/api/admin/games/{game.id}", json={}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json() == {"detail": "No fields to update"}

    def test_null_title_rejected(self, client, db_session, admin_headers):
        game = create_game(db_session)

        response = client.put(f"/api/admin/games/{game.id}", json={"title": None}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "title: Title cannot be empty"

    def test_unknown_game(self, client, admin_headers):
        response = client.put("/api/admin/games/999", json={"title": "x"}, headers=admin_headers)

        assert response.status_code == 404

    def test_update_invalidates_both_keys(self, client, db_session, stores, graph, admin_headers):
        game = create_game(db_session, title="Before")
        client.get("/api/games")
        client.get(f"/api/games/{game.id}")

        client.put(f"/api/admin/games/{game.id}", json={"title": "After"}, headers=admin_headers)

        assert stores.cache.get(GAMES_ALL_KEY) is None
        assert stores.cache.get(game_key(game.id)) is None
        assert client.get(f"/api/games/{game.id}").json()["title"] == "After"
        assert graph.games[game.id]["title"] == "After"


class TestDeleteGame:

    def test_delete_cascades_ratings(self, client, db_session, user, admin_headers):
        game = create_game(db_session)
        db_session.add(Rating(game_id=game.id, user_id=user.id, rating=4))
        db_session.commit()
        game_id = game.id

        response = client.delete(f"/api/admin/games/{game_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Game deleted"}
        db_session.expire_all()
        assert db_session.query(Game).filter(Game.id == game_id).first() is None
        assert db_session.query(Rating).filter(Rating.game_id == game_id).count() == 0
        assert client.get(f"/api/games/{game_id}").status_code == 404

    def test_delete_clears_cache_and_graph_node(self, client, db_session, stores, graph, admin_headers):
        game = create_game(db_session)
        graph.upsert_game(game.id, game.title, game.genre)
        client.get(f"/api/games/{game.id}")

        client.delete(f"/api/admin/games/{game.id}", headers=admin_headers)

        assert stores.cache.get(game_key(game.id)) is None
        assert game.id not in graph.games

    def test_delete_unknown_game(self, client, admin_headers):
        assert client.delete("/api/admin/games/999", headers=admin_headers).status_code == 404
