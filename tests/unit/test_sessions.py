"""
Unit tests for the in-process session store and identity claims.
"""

import pytest

from docportal.core.identity import Admin, Anonymous, Tenant, from_claims, is_admin, to_claims
from docportal.core.sessions import SessionStore


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestSessionStore:

    def test_create_and_resolve(self):
        store = SessionStore(ttl_seconds=60)
        token = store.create({"companyId": 1, "registrationNumber": "111"})
        assert store.resolve(token) == {"companyId": 1, "registrationNumber": "111"}

    def test_tokens_are_unique_and_opaque(self):
        store = SessionStore(ttl_seconds=60)
        first = store.create({"isAdmin": True})
        second = store.create({"isAdmin": True})
        assert first != second
        assert "isAdmin" not in first

    def test_unknown_token(self):
        assert SessionStore(ttl_seconds=60).resolve("nope") is None

    def test_destroy(self):
        store = SessionStore(ttl_seconds=60)
        token = store.create({"isAdmin": True})
        store.destroy(token)
        assert store.resolve(token) is None
        store.destroy(token)  # idempotent

    def test_expiry_boundary(self):
        clock = FakeClock()
        store = SessionStore(ttl_seconds=60, clock=clock)
        token = store.create({"isAdmin": True})

        clock.now += 59.999
        assert store.resolve(token) == {"isAdmin": True}

        clock.now = 1000.0 + 60
        assert store.resolve(token) is None
        assert len(store) == 0

    def test_resolved_claims_are_a_copy(self):
        store = SessionStore(ttl_seconds=60)
        token = store.create({"isAdmin": True})
        store.resolve(token)["isAdmin"] = False
        assert store.resolve(token) == {"isAdmin": True}

    def test_destroy_for_company(self):
        store = SessionStore(ttl_seconds=60)
        a1 = store.create({"companyId": 1, "registrationNumber": "111"})
        a2 = store.create({"companyId": 1, "registrationNumber": "111"})
        b = store.create({"companyId": 2, "registrationNumber": "222"})
        admin = store.create({"isAdmin": True})

        assert store.destroy_for_company(1) == 2
        assert store.resolve(a1) is None
        assert store.resolve(a2) is None
        assert store.resolve(b) is not None
        assert store.resolve(admin) is not None

    def test_purge_expired(self):
        clock = FakeClock()
        store = SessionStore(ttl_seconds=10, clock=clock)
        store.create({"isAdmin": True})
        clock.now += 5
        fresh = store.create({"isAdmin": True})
        clock.now += 6
        assert store.purge_expired() == 1
        assert store.resolve(fresh) == {"isAdmin": True}


class TestIdentityClaims:

    def test_tenant_round_trip(self):
        identity = Tenant(company_id=7, registration_number="123")
        assert from_claims(to_claims(identity)) == identity

    def test_admin_round_trip(self):
        assert from_claims(to_claims(Admin())) == Admin()
        assert is_admin(Admin())
        assert not is_admin(Tenant(company_id=1, registration_number="1"))

    def test_anonymous_has_no_claims(self):
        with pytest.raises(ValueError):
            to_claims(Anonymous())

    @pytest.mark.parametrize(
        "claims",
        [None, {}, {"isAdmin": "yes"}, {"companyId": "7", "registrationNumber": "123"}, {"companyId": 7}],
    )
    def test_malformed_claims_are_anonymous(self, claims):
        assert from_claims(claims) == Anonymous()
