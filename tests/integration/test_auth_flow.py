"""
Integration tests for registration, login, logout and the access gate.
"""

from docportal.core.security import sign_session_id
from tests.conftest import ADMIN_LOGIN, ADMIN_PASSWORD, COMPANY, login, login_admin, register


def test_register_redirects_to_login(client):
    response = register(client)
    assert response.status_code == 302
    assert response.headers["location"] == "/login.html"


def test_register_accepts_portuguese_form_fields(client):
    response = client.post(
        "/cadastrar",
        data={
            "nome": "Banca Central",
            "cnpj": "11222333000144",
            "box": "B7",
            "email": "central@example.com",
            "senha": "central-pass",
        },
        follow_redirects=False,
    )
    assert response.status_code == 302
    assert login(client, "central@example.com", "central-pass").status_code == 302


def test_duplicate_registration_number_answers_500(client):
    register(client)
    response = register(client, dict(COMPANY, loginId="other@example.com"))
    assert response.status_code == 500
    assert "already registered" in response.text

    # the first company still logs in with its own credentials
    assert login(client, COMPANY["loginId"], COMPANY["password"]).status_code == 302


def test_register_rejects_malformed_body(client):
    response = client.post("/cadastro", json={"name": "No password"}, follow_redirects=False)
    assert response.status_code == 422


def test_register_reserved_admin_login(client):
    response = register(client, dict(COMPANY, loginId=ADMIN_LOGIN))
    assert response.status_code == 403


def test_login_sets_cookie_and_redirects_to_company_page(client):
    register(client)
    response = login(client, COMPANY["loginId"], COMPANY["password"])

    assert response.status_code == 302
    assert response.headers["location"] == "/empresa.html"
    assert "docportal_session" in response.cookies
    assert "httponly" in response.headers["set-cookie"].lower()

    me = client.get("/me").json()
    assert me["isAdmin"] is False
    assert me["company"]["registrationNumber"] == COMPANY["registrationNumber"]
    assert "passwordHash" not in me["company"]
    assert "password_hash" not in me["company"]


def test_login_by_registration_number(client):
    register(client)
    response = client.post(
        "/login",
        data={"cnpj": COMPANY["registrationNumber"], "senha": COMPANY["password"]},
        follow_redirects=False,
    )
    assert response.status_code == 302


def test_failed_logins_are_indistinguishable(client):
    register(client)
    wrong_password = login(client, COMPANY["loginId"], "wrong")
    unknown_login = login(client, "ghost@example.com", "wrong")

    assert wrong_password.status_code == 401
    assert unknown_login.status_code == 401
    assert wrong_password.text == unknown_login.text
    assert wrong_password.headers["content-type"].startswith("text/plain")


def test_home_redirects_by_identity(client):
    assert client.get("/", follow_redirects=False).headers["location"] == "/login.html"

    register(client)
    login(client, COMPANY["loginId"], COMPANY["password"])
    assert client.get("/", follow_redirects=False).headers["location"] == "/empresa.html"

    login_admin(client)
    assert client.get("/", follow_redirects=False).headers["location"] == "/admin.html"


def test_admin_login_redirects_to_admin_page(client):
    response = login(client, ADMIN_LOGIN, ADMIN_PASSWORD)
    assert response.status_code == 302
    assert response.headers["location"] == "/admin.html"
    assert client.get("/me").json() == {"isAdmin": True, "company": None}


def test_logout_destroys_session(client):
    register(client)
    login(client, COMPANY["loginId"], COMPANY["password"])
    old_cookie = client.cookies.get("docportal_session")

    response = client.get("/logout", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/login.html"
    assert client.get("/arquivos").status_code == 401

    # replaying the old cookie does not bring the session back
    client.cookies.clear()
    client.cookies.set("docportal_session", old_cookie)
    assert client.get("/arquivos").status_code == 401


def test_anonymous_api_calls_get_401(client):
    assert client.get("/arquivos").status_code == 401
    assert client.get("/me").status_code == 401
    assert client.get("/empresas").status_code == 401


def test_forged_cookie_is_anonymous(client):
    register(client)
    login(client, COMPANY["loginId"], COMPANY["password"])

    client.cookies.clear()
    client.cookies.set("docportal_session", "forged-value")
    assert client.get("/arquivos").status_code == 401


def test_signed_cookie_for_unknown_session_is_anonymous(client, settings):
    client.cookies.set("docportal_session", sign_session_id("never-issued", settings))
    assert client.get("/me").status_code == 401


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
