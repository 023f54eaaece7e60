#!/usr/bin/env python3
"""
todoapi Quickstart — two users, one boundary.

Registers two users → each creates todos → shows that neither can see,
edit or delete the other's todos → logs out and shows the token is dead.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:3000
"""

from _common import check_backend, create_client, register


def main():
    check_backend()

    # ── Accounts ──────────────────────────────────────────────────
    print("\n1. Registering two users...")
    alice, alice_token = register("alice")
    bob, bob_token = register("bob")
    print(f"   alice: {alice['email']}")
    print(f"   bob:   {bob['email']}")
    a = create_client(alice_token)
    b = create_client(bob_token)

    # ── Todos ─────────────────────────────────────────────────────
    print("\n2. Creating todos...")
    groceries = a.post("/todos", json={"text": "buy groceries"}).json()
    b.post("/todos", json={"text": "fix the bike"})
    print(f"   alice sees {len(a.get('/todos').json()['todos'])} todo(s)")
    print(f"   bob sees   {len(b.get('/todos').json()['todos'])} todo(s)")

    # ── Ownership ─────────────────────────────────────────────────
    print("\n3. Bob tries to touch Alice's todo...")
    for method in ("get", "patch", "delete"):
        kwargs = {"json": {"completed": True}} if method == "patch" else {}
        resp = getattr(b, method)(f"/todos/{groceries['id']}", **kwargs)
        print(f"   {method.upper():6} → {resp.status_code}")

    # ── Completion ────────────────────────────────────────────────
    print("\n4. Alice completes, then reopens, her todo...")
    done = a.patch(f"/todos/{groceries['id']}", json={"completed": True}).json()["todo"]
    print(f"   completed={done['completed']} completedAt={done['completedAt']}")
    reopened = a.patch(f"/todos/{groceries['id']}", json={"completed": False}).json()["todo"]
    print(f"   completed={reopened['completed']} completedAt={reopened['completedAt']}")

    # ── Logout ────────────────────────────────────────────────────
    print("\n5. Alice logs out...")
    a.delete("/users/me/token")
    print(f"   GET /users/me with the old token → {a.get('/users/me').status_code}")

    print("\nDone.")


if __name__ == "__main__":
    main()
