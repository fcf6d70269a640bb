"""Tests for principal resolution and the role gate."""

from datetime import timedelta

import jwt
import pytest

from auth import JWT_ALGORITHM, PrincipalResolver, authorize, extract_bearer_token, issue_token
from errors import ForbiddenError, UnauthenticatedError

SECRET = "resolver-secret"


@pytest.fixture
def resolver():
    return PrincipalResolver(SECRET)


class TestExtractBearerToken:
    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer ", "Bearer    "])
    def test_missing_or_malformed(self, header):
        with pytest.raises(UnauthenticatedError, match="No token provided"):
            extract_bearer_token(header)

    def test_returns_token(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"


class TestPrincipalResolver:
    def test_resolves_user(self, db, resolver, farmer):
        token = issue_token(farmer.id, SECRET)

        user = resolver.resolve(db, f"Bearer {token}")

        assert user.id == farmer.id
        assert user.role == "farmer"

    def test_expired_token(self, db, resolver, farmer):
        token = issue_token(farmer.id, SECRET, expires_in=timedelta(seconds=-5))

        with pytest.raises(UnauthenticatedError, match="Token expired"):
            resolver.resolve(db, f"Bearer {token}")

    def test_wrong_signature(self, db, resolver, farmer):
        token = issue_token(farmer.id, "another-secret")

        with pytest.raises(UnauthenticatedError, match="Invalid token"):
            resolver.resolve(db, f"Bearer {token}")

    def test_garbage_token(self, db, resolver):
        with pytest.raises(UnauthenticatedError, match="Invalid token"):
            resolver.resolve(db, "Bearer not-a-jwt")

    def test_unknown_user(self, db, resolver):
        token = issue_token("USR-DOESNOTEXIST", SECRET)

        with pytest.raises(UnauthenticatedError, match="User not found"):
            resolver.resolve(db, f"Bearer {token}")

    def test_token_without_user_id(self, db, resolver):
        token = jwt.encode({"sub": "someone"}, SECRET, algorithm=JWT_ALGORITHM)

        with pytest.raises(UnauthenticatedError, match="User not found"):
            resolver.resolve(db, f"Bearer {token}")

    def test_deactivated_user(self, db, resolver, make_user):
        user = make_user("dealer", name="Closed Dealer", is_active=False)
        token = issue_token(user.id, SECRET)

        with pytest.raises(ForbiddenError, match="Account is deactivated"):
            resolver.resolve(db, f"Bearer {token}")


class TestAuthorize:
    def test_allows_listed_role(self, farmer):
        authorize(farmer, ["farmer", "admin"])

    def test_rejects_other_roles(self, dealer):
        with pytest.raises(ForbiddenError) as exc_info:
            authorize(dealer, ("farmer", "admin"))

        assert str(exc_info.value) == "Access denied. Only farmer, admin can access this resource."

    def test_empty_role_list_rejects_everyone(self, admin):
        with pytest.raises(ForbiddenError):
            authorize(admin, [])
