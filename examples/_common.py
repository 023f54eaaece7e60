"""
Shared helpers for todoapi examples.

Handles the health check and account setup so each example can focus
on its specific workflow.
"""

import sys
import uuid

import httpx

BASE = "http://localhost:3000"


def check_backend() -> None:
    """Verify the backend is reachable and healthy."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  todoapi serve")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Database: {'✓' if health['database'] == 'ok' else '✗'}")

    if health["database"] != "ok":
        print("\nERROR: Database is not connected. Check TODOAPI_DATABASE_URL.")
        sys.exit(1)


def register(label: str, password: str = "demo-password") -> tuple[dict, str]:
    """Register a fresh user, returning (user, token).

    Uses a unique email per run so examples are repeatable.
    """
    email = f"{label}-{uuid.uuid4().hex[:8]}@example.com"
    resp = httpx.post(
        f"{BASE}/users",
        json={"email": email, "password": password},
        timeout=10,
    )
    if resp.status_code != 200:
        print(f"ERROR: Registration failed: {resp.status_code} {resp.text}")
        sys.exit(1)
    return resp.json(), resp.headers["x-auth"]


def create_client(token: str) -> httpx.Client:
    """Return an httpx Client that sends the given x-auth token."""
    return httpx.Client(base_url=BASE, timeout=10, headers={"x-auth": token})
