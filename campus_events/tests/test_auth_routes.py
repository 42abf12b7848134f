from campus_events.database.init_db import migrate_email_domains
from campus_events.database.record_store import CREDENTIALS, USERS


def test_signup_success(client, store):
    payload = {
        "email": "Test@KLU.ac.in",
        "password": "password123",
        "name": "Test User",
        "role": "student",
        "rollNumber": "CS21099",
        "department": "Computer Science",
        "year": "2",
    }

    response = client.post("/auth/signup", json=payload)

    assert response.status_code == 201
    data = response.get_json()
    assert data["user"]["email"] == "test@klu.ac.in"
    assert data["user"]["role"] == "student"
    assert data["user"]["rollNumber"] == "CS21099"
    assert "access_token" in data

    # Password hash lives in credentials, never on the profile
    credential = store.find(CREDENTIALS, email="test@klu.ac.in")
    assert credential["passwordHash"] != "password123"
    assert "passwordHash" not in store.get(USERS, data["user"]["id"])


def test_signup_hashes_password(client, store, mocker):
    mock_ph = mocker.patch("campus_events.auth_service.routes.ph")
    mock_ph.hash.return_value = "hashed_secret"

    response = client.post("/auth/signup", json={"email": "a@klu.ac.in", "password": "pw", "name": "A"})

    assert response.status_code == 201
    assert store.find(CREDENTIALS, email="a@klu.ac.in")["passwordHash"] == "hashed_secret"


def test_signup_missing_fields(client):
    response = client.post("/auth/signup", json={})
    assert response.status_code == 400
    assert "Email, password and name required" in response.get_json()["error"]


def test_signup_duplicate_email(client, student):
    response = client.post("/auth/signup", json={"email": student["email"], "password": "pw", "name": "Again"})

    assert response.status_code == 400
    assert response.get_json() == {"error": "Email already exists", "kind": "Duplicate"}


def test_signup_invalid_role(client):
    response = client.post("/auth/signup", json={"email": "x@klu.ac.in", "password": "pw", "name": "X", "role": "dean"})
    assert response.status_code == 400


def test_signup_hash_failure(client, mocker):
    mock_ph = mocker.patch("campus_events.auth_service.routes.ph")
    mock_ph.hash.side_effect = Exception("boom")

    response = client.post("/auth/signup", json={"email": "x@klu.ac.in", "password": "pw", "name": "X"})
    assert response.status_code == 500


def test_login_success(client):
    client.post("/auth/signup", json={"email": "meena@klu.ac.in", "password": "secret", "name": "Meena"})

    response = client.post("/auth/login", json={"email": "meena@klu.ac.in", "password": "secret"})

    assert response.status_code == 200
    data = response.get_json()
    assert data["user"]["name"] == "Meena"
    assert "access_token" in data


def test_login_wrong_password(client):
    client.post("/auth/signup", json={"email": "meena@klu.ac.in", "password": "secret", "name": "Meena"})

    response = client.post("/auth/login", json={"email": "meena@klu.ac.in", "password": "wrong"})

    assert response.status_code == 401
    assert response.get_json()["error"] == "Invalid email or password"


def test_login_unknown_user(client):
    response = client.post("/auth/login", json={"email": "ghost@klu.ac.in", "password": "pw"})
    assert response.status_code == 401


def test_login_without_credential_accepts_any_password(client, student):
    response = client.post("/auth/login", json={"email": student["email"], "password": "anything"})

    assert response.status_code == 200
    assert response.get_json()["user"]["id"] == student["id"]


def test_login_profile_missing(client, store):
    client.post("/auth/signup", json={"email": "meena@klu.ac.in", "password": "secret", "name": "Meena"})
    user_id = store.find(USERS, email="meena@klu.ac.in")["id"]
    store.delete(USERS, user_id)

    response = client.post("/auth/login", json={"email": "meena@klu.ac.in", "password": "secret"})
    assert response.status_code == 404


def test_login_missing_fields(client):
    response = client.post("/auth/login", json={"email": "a@klu.ac.in"})
    assert response.status_code == 400


def test_me_success(client, student, auth_header):
    response = client.get("/auth/me", headers=auth_header(student))

    assert response.status_code == 200
    assert response.get_json()["user"]["email"] == student["email"]


def test_me_with_signup_token(client):
    token = client.post(
        "/auth/signup", json={"email": "t@klu.ac.in", "password": "pw", "name": "T"}
    ).get_json()["access_token"]

    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.get_json()["user"]["email"] == "t@klu.ac.in"


def test_me_no_token(client):
    response = client.get("/auth/me")
    assert response.status_code == 401
    assert response.get_json()["kind"] == "Unauthenticated"


def test_login_after_email_domain_migration(client, store):
    client.post("/auth/signup", json={"email": "bob@college.edu", "password": "secret123", "name": "Bob"})

    migrate_email_domains(store, "@college.edu", "@klu.ac.in")

    response = client.post("/auth/login", json={"email": "bob@klu.ac.in", "password": "WRONG"})
    assert response.status_code == 401

    response = client.post("/auth/login", json={"email": "bob@klu.ac.in", "password": "secret123"})
    assert response.status_code == 200
    assert store.find(CREDENTIALS, email="bob@klu.ac.in") is not None


def test_login_checks_credential_by_user_id(client, store):
    client.post("/auth/signup", json={"email": "bob@klu.ac.in", "password": "secret123", "name": "Bob"})
    user = store.find(USERS, email="bob@klu.ac.in")
    store.put(USERS, {**user, "email": "robert@klu.ac.in"})

    response = client.post("/auth/login", json={"email": "robert@klu.ac.in", "password": "WRONG"})
    assert response.status_code == 401
