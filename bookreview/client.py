"""
Book Review API Client

A small synchronous client for the Book Review API, covering what the
web frontend does: browsing books, reading and posting reviews,
registering or logging in, and viewing or editing profiles.

Auth state is kept the way the frontend keeps it: a reducer that turns
LOGIN/LOGOUT actions into a new AuthState, and a store that persists the
state to a JSON file so a session survives restarts.

Usage:
    from bookreview.client import AuthStore, BookReviewClient

    client = BookReviewClient("http://localhost:5000", store=AuthStore("~/.bookreview.json"))
    client.login("jane@example.com", "SecurePass123")
    page = client.list_books(search="dune")
    client.submit_review(page["items"][0]["id"], 5, "A masterpiece of world building.")

Any httpx.Client works as the transport, including FastAPI's TestClient.
"""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import httpx

logger = logging.getLogger(__name__)

API_PREFIX = "/api"

LOGIN = "LOGIN"
LOGOUT = "LOGOUT"


# =============================================================================
# Errors
# =============================================================================
class APIError(Exception):
    """A non-2xx response from the API."""

    def __init__(self, status_code: int, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class NotAuthenticatedError(Exception):
    """The action needs a logged-in user."""


# =============================================================================
# Auth State
# =============================================================================
@dataclass(frozen=True)
class AuthState:
    user: dict | None = None
    token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.token is not None


def auth_reducer(state: AuthState, action: dict) -> AuthState:
    """
    Compute the next auth state.

    Actions:
        {"type": "LOGIN", "payload": {"token": ..., "user": {...}}}
        {"type": "LOGOUT"}

    Unknown actions return the state unchanged.
    """
    action_type = action.get("type")

    if action_type == LOGIN:
        payload = action.get("payload") or {}
        return AuthState(user=payload.get("user"), token=payload.get("token"))

    if action_type == LOGOUT:
        return AuthState()

    return state


class AuthStore:
    """
    Auth state persisted to a JSON file.

    The saved state is restored on construction. Logging out removes the
    file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self.state = self.load()

    def load(self) -> AuthState:
        if not self.path.exists():
            return AuthState()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable auth state at {self.path}: {e}")
            return AuthState()
        return AuthState(user=data.get("user"), token=data.get("token"))

    def save(self) -> None:
        if self.state.is_authenticated:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(asdict(self.state)), encoding="utf-8")
        else:
            self.path.unlink(missing_ok=True)

    def dispatch(self, action: dict) -> AuthState:
        self.state = auth_reducer(self.state, action)
        self.save()
        return self.state


class MemoryAuthStore(AuthStore):
    """Auth state that lives only as long as the process."""

    def __init__(self) -> None:
        self.state = AuthState()

    def save(self) -> None:
        pass


# =============================================================================
# Client
# =============================================================================
class BookReviewClient:
    """
    Client for the Book Review REST API.

    Args:
        base_url: Server address, used when no transport is given
        http: Existing httpx.Client (e.g. fastapi.testclient.TestClient)
        store: Where the auth state lives; in memory by default
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        http: httpx.Client | None = None,
        store: AuthStore | None = None,
    ) -> None:
        self.http = http if http is not None else httpx.Client(base_url=base_url, timeout=10.0)
        self.store = store if store is not None else MemoryAuthStore()

    @property
    def state(self) -> AuthState:
        return self.store.state

    def close(self) -> None:
        self.http.close()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------
    def _headers(self, auth: bool) -> dict[str, str]:
        if not auth:
            return {}
        if not self.state.is_authenticated:
            raise NotAuthenticatedError("Log in to continue")
        return {"Authorization": f"Bearer {self.state.token}"}

    def _request(
        self,
        method: str,
        path: str,
        *,
        auth: bool = False,
        params: dict | None = None,
        json_body: dict | None = None,
    ) -> Any:
        headers = self._headers(auth)
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        response = self.http.request(
            method,
            f"{API_PREFIX}{path}",
            params=params,
            json=json_body,
            headers=headers,
        )

        if response.is_error:
            raise self._error_from(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_from(response: httpx.Response) -> APIError:
        try:
            body = response.json()
        except ValueError:
            return APIError(response.status_code, response.text or response.reason_phrase)

        message = body.get("detail") or body.get("error") or "Request failed"
        if not isinstance(message, str):
            message = str(message)
        return APIError(response.status_code, message, body.get("errors"))

    # -------------------------------------------------------------------------
    # Books
    # -------------------------------------------------------------------------
    def list_books(
        self,
        page: int = 1,
        search: str | None = None,
        genre: str | None = None,
        per_page: int | None = None,
    ) -> dict:
        """One page of books; genre "All" means every genre."""
        return self._request(
            "GET",
            "/books",
            params={"page": page, "search": search or None, "genre": genre, "per_page": per_page},
        )

    def get_book(self, book_id: int) -> dict:
        return self._request("GET", f"/books/{book_id}")

    # -------------------------------------------------------------------------
    # Reviews
    # -------------------------------------------------------------------------
    def list_reviews(self, book_id: int, page: int = 1) -> dict:
        return self._request("GET", "/reviews", params={"book_id": book_id, "page": page})

    def submit_review(self, book_id: int, rating: int, content: str) -> dict:
        """
        Post a review as the logged-in user.

        Raises:
            NotAuthenticatedError: Nobody is logged in
            APIError: The server rejected the review
        """
        return self._request(
            "POST",
            "/reviews",
            auth=True,
            json_body={"book_id": book_id, "rating": rating, "content": content},
        )

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------
    def register(
        self,
        username: str,
        email: str,
        password: str,
        confirm_password: str,
    ) -> AuthState:
        """Create an account and log in as it."""
        if password != confirm_password:
            raise ValueError("Passwords do not match")

        data = self._request(
            "POST",
            "/auth/register",
            json_body={"username": username, "email": email, "password": password},
        )
        return self.store.dispatch({"type": LOGIN, "payload": data})

    def login(self, email: str, password: str) -> AuthState:
        data = self._request(
            "POST",
            "/auth/login",
            json_body={"email": email, "password": password},
        )
        return self.store.dispatch({"type": LOGIN, "payload": data})

    def logout(self) -> AuthState:
        return self.store.dispatch({"type": LOGOUT})

    def me(self) -> dict:
        return self._request("GET", "/auth/me", auth=True)

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------
    def get_user(self, user_id: int) -> dict:
        """Public profile of any user; no email."""
        return self._request("GET", f"/users/{user_id}")

    def update_profile(self, profile_picture: str | None = None, bio: str | None = None) -> dict:
        """Change the logged-in user's profile; fields left as None are not sent."""
        changes = {"profile_picture": profile_picture, "bio": bio}
        return self._request(
            "PUT",
            "/users/me",
            auth=True,
            json_body={k: v for k, v in changes.items() if v is not None},
        )
