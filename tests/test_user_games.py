from conftest import auth_header, create_user


def test_empty_list_without_document(client, user_headers):
    response = client.get("/api/user-games/my-list", headers=user_headers)

    assert response.status_code == 200
    assert response.json() == {"games": []}


def test_adding_twice_keeps_one_entry(client, user_headers):
    client.post("/api/user-games/add", json={"gameId": 7}, headers=user_headers)
    response = client.post("/api/user-games/add", json={"gameId": 7}, headers=user_headers)

    assert response.status_code == 200
    assert response.json() == {"games": [7]}
    assert client.get("/api/user-games/my-list", headers=user_headers).json() == {"games": [7]}


def test_remove_game(client, user_headers):
    client.post("/api/user-games/add", json={"gameId": 1}, headers=user_headers)
    client.post("/api/user-games/add", json={"gameId": 2}, headers=user_headers)

    response = client.post("/api/user-games/remove", json={"gameId": 1}, headers=user_headers)

    assert response.json() == {"games": [2]}


def test_remove_absent_game_succeeds(client, user_headers):
    no_document = client.post("/api/user-games/remove", json={"gameId": 3}, headers=user_headers)
    client.post("/api/user-games/add", json={"gameId": 1}, headers=user_headers)
    not_listed = client.post("/api/user-games/remove", json={"gameId": 3}, headers=user_headers)

    assert no_document.status_code == 200
    assert no_document.json() == {"games": []}
    assert not_listed.json() == {"games": [1]}


def test_lists_are_per_user(client, db_session, user_headers):
    other = create_user(db_session, email="other@example.com")
    client.post("/api/user-games/add", json={"gameId": 5}, headers=user_headers)

    response = client.get("/api/user-games/my-list", headers=auth_header(other))

    assert response.json() == {"games": []}


def test_validation_and_auth(client, user_headers):
    assert client.post("/api/user-games/add", json={"gameId": "abc"}, headers=user_headers).status_code == 400
    assert client.post("/api/user-games/add", json={}, headers=user_headers).status_code == 400
    assert client.get("/api/user-games/my-list").status_code == 401
