from bson import ObjectId

from conftest import auth_header, create_game, create_user


def post_comment(client, headers, game_id, content):
    return client.post("/api/comments", json={"gameId": game_id, "content": content}, headers=headers)


def test_post_comment(client, db_session, user, user_headers):
    game = create_game(db_session)

    response = post_comment(client, user_headers, game.id, "  Great soundtrack  ")

    assert response.status_code == 201
    body = response.json()
    assert body["content"] == "Great soundtrack"
    assert body["game_id"] == game.id
    assert body["user_id"] == user.id
    assert body["user_name"] == user.name
    assert ObjectId.is_valid(body["id"])


def test_comment_length_limits(client, db_session, user_headers):
    game = create_game(db_session)

    too_long = post_comment(client, user_headers, game.id, "x" * 1001)
    blank = post_comment(client, user_headers, game.id, "   \n\t ")
    at_limit = post_comment(client, user_headers, game.id, "x" * 1000)

    assert too_long.status_code == 400
    assert blank.status_code == 400
    assert at_limit.status_code == 201


def test_comment_text_is_stored_as_written(client, db_session, user_headers):
    game = create_game(db_session)
    text = "Tom & Jerry <3 this, 2 < 5 and <b>bold</b>"

    response = post_comment(client, user_headers, game.id, text)

    assert response.status_code == 201
    assert response.json()["content"] == text
    listed = client.get(f"/api/comments/game/{game.id}").json()
    assert listed[0]["content"] == text


def test_comment_limit_applies_to_stored_text(client, db_session, user_headers):
    game = create_game(db_session)

    response = post_comment(client, user_headers, game.id, "&" * 1000)

    assert response.status_code == 201
    assert response.json()["content"] == "&" * 1000


def test_comment_rejects_script(client, db_session, user_headers):
    game = create_game(db_session)

    response = post_comment(client, user_headers, game.id, "<script>alert(1)</script>")

    assert response.status_code == 400
    assert response.json() == {"detail": "content: Invalid characters detected"}


def test_comment_on_unknown_game(client, user_headers):
    response = post_comment(client, user_headers, 4040, "hello")

    assert response.status_code == 404
    assert response.json() == {"detail": "Game not found"}


def test_comment_requires_auth(client, db_session):
    game = create_game(db_session)

    assert post_comment(client, {}, game.id, "hello").status_code == 401


def test_list_comments_newest_first_with_authors(client, db_session, user, user_headers):
    game = create_game(db_session)
    other = create_user(db_session, email="other@example.com", name="Other Person")
    post_comment(client, user_headers, game.id, "first")
    post_comment(client, auth_header(other), game.id, "second")

    response = client.get(f"/api/comments/game/{game.id}")

    assert response.status_code == 200
    comments = response.json()
    assert [c["content"] for c in comments] == ["second", "first"]
    assert comments[0]["user_name"] == "Other Person"
    assert comments[0]["user_email"] == "other@example.com"
    assert comments[1]["user_name"] == user.name


def test_list_comments_for_game_without_any(client):
    assert client.get("/api/comments/game/1").json() == []


def test_edit_own_comment(client, db_session, user_headers):
    game = create_game(db_session)
    comment_id = post_comment(client, user_headers, game.id, "tpyo").json()["id"]

    response = client.put(f"/api/comments/{comment_id}", json={"content": "typo"}, headers=user_headers)

    assert response.status_code == 200
    assert response.json()["content"] == "typo"
    assert client.get(f"/api/comments/game/{game.id}").json()[0]["content"] == "typo"


def test_edit_validation(client, db_session, user_headers):
    game = create_game(db_session)
    comment_id = post_comment(client, user_headers, game.id, "hello").json()["id"]

    response = client.put(f"/api/comments/{comment_id}", json={"content": "  "}, headers=user_headers)

    assert response.status_code == 400


def test_non_owner_cannot_edit_or_delete(client, db_session, user_headers):
    game = create_game(db_session)
    owner = create_user(db_session, email="owner@example.com")
    comment_id = post_comment(client, auth_header(owner), game.id, "mine").json()["id"]

    edit = client.put(f"/api/comments/{comment_id}", json={"content": "yours"}, headers=user_headers)
    delete = client.delete(f"/api/comments/{comment_id}", headers=user_headers)

    assert edit.status_code == 404
    assert delete.status_code == 404
    assert delete.json() == {"detail": "Comment not found"}
    assert client.get(f"/api/comments/game/{game.id}").json()[0]["content"] == "mine"


def test_delete_own_comment(client, db_session, user_headers):
    game = create_game(db_session)
    comment_id = post_comment(client, user_headers, game.id, "bye").json()["id"]

    response = client.delete(f"/api/comments/{comment_id}", headers=user_headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Comment deleted"}
    assert client.get(f"/api/comments/game/{game.id}").json() == []


def test_missing_and_malformed_ids(client, user_headers):
    missing = client.delete(f"/api/comments/{ObjectId()}", headers=user_headers)
    malformed = client.delete("/api/comments/not-an-id", headers=user_headers)

    assert missing.status_code == 404
    assert malformed.status_code == 400
    assert malformed.json() == {"detail": "Invalid comment ID"}
