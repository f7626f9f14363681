from walletauth.main import app, get_auth_service, get_init_limiter
from walletauth.rate_limit import RateLimiter
from walletauth.util import b58e


def init(client, address):
    return client.post("/init-auth", json={"walletAddress": address})

def verify(client, address, signature):
    return client.post("/verify-auth", json={"walletAddress": address, "signature": signature})

def login(client, wallet):
    challenge = init(client, wallet.address).json()
    return verify(client, wallet.address, wallet.sign(challenge["message"])).json()


# Health probe
def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert isinstance(body["timestamp"], int)

# Happy path -> challenge
def test_init_auth_returns_challenge(client, wallet):
    r = init(client, wallet.address)
    assert r.status_code == 200
    body = r.json()
    assert len(body["code"]) == 6
    assert body["message"].startswith(f"Verify wallet ownership: {body['code']}\n")
    assert body["message"].endswith(f"\nAddress: {wallet.address}")
    assert body["instructions"]
    assert body["expiresAt"] > 0

# Happy path -> token, then replay blocked
def test_verify_auth_issues_token_once(client, wallet):
    challenge = init(client, wallet.address).json()
    sig = wallet.sign(challenge["message"])

    r1 = verify(client, wallet.address, sig)
    assert r1.status_code == 200
    body = r1.json()
    assert body["success"] is True
    assert body["token"].startswith("session_")
    assert body["message"] == "Wallet ownership verified successfully"

    r2 = verify(client, wallet.address, sig)
    assert r2.status_code == 404
    assert r2.json()["success"] is False
    assert r2.json()["code"] == "NO_CHALLENGE_FOUND"

# snake_case field names are accepted too
def test_init_auth_accepts_snake_case(client, wallet):
    r = client.post("/init-auth", json={"wallet_address": wallet.address})
    assert r.status_code == 200

def test_init_auth_missing_address(client):
    r = client.post("/init-auth", json={})
    assert r.status_code == 400
    assert r.json() == {"error": "walletAddress is required", "code": "INVALID_INPUT"}

def test_init_auth_wrong_type(client):
    r = client.post("/init-auth", json={"walletAddress": 12345})
    assert r.status_code == 400
    assert r.json()["code"] == "INVALID_INPUT"

def test_init_auth_non_json_body(client):
    r = client.post("/init-auth", content=b"not json", headers={"content-type": "application/json"})
    assert r.status_code == 400
    assert r.json()["code"] == "INVALID_INPUT"

def test_init_auth_invalid_format(client):
    r = init(client, "definitely-not-a-wallet")
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid wallet address format", "code": "INVALID_FORMAT"}

def test_init_auth_not_whitelisted(client, stranger, service):
    r = init(client, stranger.address)
    assert r.status_code == 403
    assert r.json()["code"] == "NOT_WHITELISTED"
    assert service.store.get(stranger.address) is None

def test_verify_before_init(client, wallet):
    r = verify(client, wallet.address, wallet.sign("nothing issued"))
    assert r.status_code == 404
    assert r.json()["code"] == "NO_CHALLENGE_FOUND"

def test_verify_missing_signature(client, wallet):
    r = client.post("/verify-auth", json={"walletAddress": wallet.address})
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "signature is required", "code": "INVALID_INPUT"}

def test_verify_malformed_signature(client, wallet):
    init(client, wallet.address)
    r = verify(client, wallet.address, "0OIl")
    assert r.status_code == 400
    assert r.json()["code"] == "MALFORMED_SIGNATURE"
    assert r.json()["success"] is False

def test_verify_bad_signature(client, wallet):
    init(client, wallet.address)
    r = verify(client, wallet.address, b58e(b"X" * 64))
    assert r.status_code == 401
    assert r.json() == {
        "success": False,
        "error": "Verification failed. Invalid signature.",
        "code": "VERIFICATION_FAILED",
    }

# Session lookup and revocation
def test_session_lifecycle(client, wallet):
    token = login(client, wallet)["token"]
    headers = {"Authorization": f"Bearer {token}"}

    r = client.get("/session", headers=headers)
    assert r.status_code == 200
    assert r.json()["walletAddress"] == wallet.address
    assert r.json()["valid"] is True

    r = client.delete("/session", headers=headers)
    assert r.json() == {"revoked": True}

    r = client.get("/session", headers=headers)
    assert r.status_code == 401
    assert r.json()["valid"] is False

def test_session_requires_bearer(client):
    assert client.get("/session").status_code == 401
    assert client.get("/session", headers={"Authorization": "Basic abc"}).status_code == 401
    assert client.delete("/session").json() == {"revoked": False}

def test_rate_limited(client, wallet):
    limiter = RateLimiter(1)
    app.dependency_overrides[get_init_limiter] = lambda: limiter
    assert init(client, wallet.address).status_code == 200
    r = init(client, wallet.address)
    assert r.status_code == 429
    assert r.json()["code"] == "RATE_LIMITED"
    assert int(r.headers["Retry-After"]) >= 1

# Fresh X-API-Key or X-Forwarded-For values do not open new buckets
def test_rate_limit_ignores_rotating_headers(client, wallet):
    limiter = RateLimiter(2)
    app.dependency_overrides[get_init_limiter] = lambda: limiter
    statuses = []
    for i in range(10):
        headers = {"X-API-Key": f"{i:08d}", "X-Forwarded-For": f"10.0.0.{i}"}
        r = client.post("/init-auth", json={"walletAddress": wallet.address}, headers=headers)
        statuses.append(r.status_code)
    assert statuses == [200, 200] + [429] * 8
    assert len(limiter) == 1

def test_internal_error_is_generic(client):
    class Broken:
        def initiate(self, address):
            raise RuntimeError("secret detail")

        def verify(self, address, signature):
            raise RuntimeError("secret detail")

    app.dependency_overrides[get_auth_service] = lambda: Broken()
    r = client.post("/init-auth", json={"walletAddress": "abc"})
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}

    r = client.post("/verify-auth", json={"walletAddress": "abc", "signature": "def"})
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Internal server error"}
    assert "secret detail" not in r.text

def test_request_id_header(client):
    r = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.headers["X-Request-ID"] == "req-123"
    r = client.get("/health")
    assert r.headers["X-Request-ID"]
