# tests/integration/test_auth_api.py


def _signup(client, mailer, email="ann@x.com", **extra):
    body = {"name": "Ann Lee", "email": email, **extra}
    r = client.post("/auth/request-otp", json=body)
    assert r.status_code == 200, r.text
    return mailer.last_code(email)


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_signup_scenario_and_code_reuse(client, mailer):
    r = client.post("/auth/request-otp", json={"name": "Ann Lee", "email": "ann@x.com", "dob": "2000-01-01"})
    assert r.status_code == 200, r.text
    assert "message" in r.json()
    code = mailer.last_code("ann@x.com")

    r = client.post("/auth/verify-otp", json={"email": "ann@x.com", "otp": code})
    assert r.status_code == 200, r.text
    body = r.json()
    assert isinstance(body["token"], str) and body["token"].count(".") == 2
    user = body["user"]
    assert user["id"]
    assert user["name"] == "Ann Lee"
    assert user["dob"] == "2000-01-01"
    assert user["email"] == "ann@x.com"
    assert user["provider"] == "email"

    again = client.post("/auth/verify-otp", json={"email": "ann@x.com", "otp": code})
    assert again.status_code == 400
    assert again.json() == {"error": "OTP not requested or expired"}


def test_verify_with_profile_fields(client, mailer):
    code = _signup(client, mailer)
    r = client.post(
        "/auth/verify-otp",
        json={"email": "ann@x.com", "otp": code, "name": "Ann Lee", "dob": "2000-01-01"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["user"]["name"] == "Ann Lee"
    assert r.json()["user"]["dob"] == "2000-01-01"


def test_email_is_case_normalized(client, mailer):
    r = client.post("/auth/request-otp", json={"name": "Ann Lee", "email": "  Ann@X.com "})
    assert r.status_code == 200, r.text
    code = mailer.last_code("ann@x.com")
    r = client.post("/auth/verify-otp", json={"email": "ANN@x.com", "otp": code})
    assert r.status_code == 200, r.text
    assert r.json()["user"]["email"] == "ann@x.com"


def test_signin_unknown_account(client, mailer):
    r = client.post("/auth/signin-request-otp", json={"email": "unknown@x.com"})
    assert r.status_code == 404
    assert r.json() == {"error": "No account found. Please sign up first."}
    assert mailer.sent == []


def test_signin_flow_for_existing_account(client, mailer, signed_in):
    _, user = signed_in
    r = client.post("/auth/signin-request-otp", json={"email": "ann@x.com"})
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "OTP sent for sign-in."}

    r = client.post("/auth/signin-verify-otp", json={"email": "ann@x.com", "otp": mailer.last_code("ann@x.com")})
    assert r.status_code == 200, r.text
    assert r.json()["user"]["id"] == user["id"]


def test_signin_verify_without_account_is_404(client, mailer):
    code = _signup(client, mailer, email="new@x.com")
    r = client.post("/auth/signin-verify-otp", json={"email": "new@x.com", "otp": code})
    assert r.status_code == 404
    assert r.json() == {"error": "Account not found"}


def test_invalid_code_then_rate_limit(client, mailer):
    code = _signup(client, mailer)
    wrong = "000000" if code != "000000" else "111111"
    for _ in range(5):
        r = client.post("/auth/verify-otp", json={"email": "ann@x.com", "otp": wrong})
        assert r.status_code == 400
        assert r.json() == {"error": "Invalid OTP"}

    r = client.post("/auth/verify-otp", json={"email": "ann@x.com", "otp": code})
    assert r.status_code == 429
    assert r.json() == {"error": "Too many OTP attempts"}

    r = client.post("/auth/verify-otp", json={"email": "ann@x.com", "otp": code})
    assert r.status_code == 400
    assert r.json() == {"error": "OTP not requested or expired"}


def test_verify_without_request(client):
    r = client.post("/auth/verify-otp", json={"email": "ann@x.com", "otp": "123456"})
    assert r.status_code == 400
    assert r.json() == {"error": "OTP not requested or expired"}


# ------------------------
# Request validation (first issue wins, 400)
# ------------------------
def test_request_otp_rejects_short_name(client, mailer):
    r = client.post("/auth/request-otp", json={"name": "A", "email": "ann@x.com"})
    assert r.status_code == 400
    assert r.json() == {"error": "Name must be at least 2 characters"}
    assert mailer.sent == []


def test_request_otp_rejects_name_with_digits(client):
    r = client.post("/auth/request-otp", json={"name": "Ann 2", "email": "ann@x.com"})
    assert r.status_code == 400
    assert r.json() == {"error": "Name may only contain letters and spaces"}


def test_request_otp_rejects_bad_email(client):
    r = client.post("/auth/request-otp", json={"name": "Ann Lee", "email": "not-an-email"})
    assert r.status_code == 400
    assert "email" in r.json()["error"].lower()


def test_request_otp_requires_fields(client):
    r = client.post("/auth/request-otp", json={})
    assert r.status_code == 400
    assert "required" in r.json()["error"].lower()


def test_request_otp_accepts_empty_dob(client, mailer):
    r = client.post("/auth/request-otp", json={"name": "Ann Lee", "email": "ann@x.com", "dob": ""})
    assert r.status_code == 200, r.text


def test_verify_rejects_malformed_otp(client):
    r = client.post("/auth/verify-otp", json={"email": "ann@x.com", "otp": "12ab"})
    assert r.status_code == 400
    assert r.json() == {"error": "OTP must be 6 digits"}


def test_verify_rejects_non_ascii_digits_without_using_an_attempt(client, mailer):
    code = _signup(client, mailer)
    r = client.post("/auth/verify-otp", json={"email": "ann@x.com", "otp": "\u0661\u0662\u0663\u0664\u0665\u0666"})
    assert r.status_code == 400
    assert r.json() == {"error": "OTP must be 6 digits"}

    r = client.post("/auth/verify-otp", json={"email": "ann@x.com", "otp": code})
    assert r.status_code == 200, r.text


def test_request_otp_mail_failure_is_generic_500(client, mailer, monkeypatch):
    from hdnotes_backend.app.core.errors import DependencyError

    def boom(to, otp):
        raise DependencyError("Failed to send OTP")

    monkeypatch.setattr(mailer, "send_otp", boom)
    r = client.post("/auth/request-otp", json={"name": "Ann Lee", "email": "ann@x.com"})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to send OTP"}


# ------------------------
# Google
# ------------------------
def test_google_missing_token(client):
    r = client.post("/auth/google", json={})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing idToken"}


def test_google_rejected_token(client):
    r = client.post("/auth/google", json={"idToken": "forged"})
    assert r.status_code == 401
    assert r.json() == {"error": "Google auth failed"}


def test_google_links_email_account_and_is_idempotent(client, google, signed_in):
    _, user = signed_in
    google.add("tok", email="ann@x.com", sub="g-ann", name="Ann G")

    r1 = client.post("/auth/google", json={"idToken": "tok"})
    assert r1.status_code == 200, r1.text
    assert r1.json()["user"]["id"] == user["id"]
    assert r1.json()["user"]["provider"] == "email"

    r2 = client.post("/auth/google", json={"idToken": "tok"})
    assert r2.status_code == 200, r2.text
    assert r2.json()["user"]["id"] == user["id"]


def test_google_new_account_then_me(client, google):
    google.add("tok", email="bob@x.com", sub="g-1", name="Bob Stone")
    r = client.post("/auth/google", json={"idToken": "tok"})
    assert r.status_code == 200, r.text
    token = r.json()["token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "bob@x.com"
    assert me.json()["user"]["provider"] == "google"


def test_me_requires_token(client):
    r = client.get("/auth/me")
    assert r.status_code == 401
    assert r.json() == {"error": "Missing token"}


def test_me_rejects_bad_token(client):
    r = client.get("/auth/me", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid token"}
