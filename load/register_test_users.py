"""
Register a batch of stage managers against the API, approve them as the
super admin, and write a CSV for Locust.

Usage examples:

  python load/register_test_users.py \
    --host http://localhost:8000 \
    --prefix sm \
    --domain fame.test \
    --start 1 \
    --count 20 \
    --password password123 \
    --admin-email admin@fame.local \
    --admin-password changeme123 \
    --outfile load/test_users.csv

Then in Locust runs, either:
  - set FAME_TEST_USERS from the generated CSV content, or
  - keep the file at load/test_users.csv; locustfile.py will auto-load it.
"""

from __future__ import annotations

import argparse
import os
from typing import List

import requests


def make_user_payload(email: str, password: str, idx: int) -> dict:
    return {
        "email": email,
        "password": password,
        "first_name": f"Test{idx}",
        "last_name": "StageManager",
        "phone": None,
    }


def register_users(host: str, emails: List[str], password: str) -> None:
    url = host.rstrip("/") + "/api/auth/register-stage-manager"
    s = requests.Session()
    created = 0
    exists = 0
    failed: List[str] = []
    for i, email in enumerate(emails, 1):
        try:
            r = s.post(url, json=make_user_payload(email, password, i), timeout=15)
        except requests.RequestException as exc:
            failed.append(email)
            print(f"ERROR registering {email}: {exc}")
            continue
        if r.status_code in (200, 201):
            created += 1
            continue
        if r.status_code == 409:
            exists += 1
            continue
        failed.append(email)
        print(f"ERROR {r.status_code} registering {email}: {r.text[:200]}")
    print(f"Done. created={created} exists={exists} failed={len(failed)}")
    if failed:
        print("Failed emails:", ", ".join(failed))


def approve_pending(host: str, emails: List[str], admin_email: str, admin_password: str) -> None:
    """Sign in as the super admin and approve the pending registrations we created."""
    base = host.rstrip("/")
    s = requests.Session()
    r = s.post(f"{base}/api/auth/login", json={"email": admin_email, "password": admin_password}, timeout=15)
    if r.status_code != 200:
        print(f"ERROR admin login failed ({r.status_code}); registrations stay pending")
        return
    pending = s.get(f"{base}/api/super-admin/users", timeout=15).json()["data"]["pending_stage_managers"]
    wanted = {e.lower() for e in emails}
    approved = 0
    for user in pending:
        if user["email"] not in wanted:
            continue
        r = s.post(f"{base}/api/super-admin/users/{user['id']}/action", json={"action": "approve"}, timeout=15)
        if r.status_code == 200:
            approved += 1
        else:
            print(f"ERROR {r.status_code} approving {user['email']}: {r.text[:200]}")
    print(f"Approved {approved} stage managers")


def write_csv(path: str, emails: List[str], password: str) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for e in emails:
            f.write(f"{e}:{password}\n")
    print(f"Wrote {len(emails)} creds to {path}")


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--host", required=True, help="API host, e.g. http://localhost:8000")
    ap.add_argument("--prefix", default="sm", help="Local part prefix, e.g. 'sm' -> sm1@...")
    ap.add_argument("--domain", default="fame.test", help="Email domain")
    ap.add_argument("--start", type=int, default=1, help="Starting index (inclusive)")
    ap.add_argument("--count", type=int, default=20, help="Number of stage managers to create")
    ap.add_argument("--password", default="password123", help="Password for all users")
    ap.add_argument("--admin-email", default=os.getenv("DEFAULT_ADMIN_EMAIL", "admin@fame.local"))
    ap.add_argument("--admin-password", default=os.getenv("DEFAULT_ADMIN_PASSWORD", ""))
    ap.add_argument("--outfile", default="load/test_users.csv", help="Output CSV (email:password per line)")
    args = ap.parse_args()

    emails = [f"{args.prefix}{i}@{args.domain}" for i in range(args.start, args.start + args.count)]

    print(f"Registering {len(emails)} stage managers at {args.host} ...")
    register_users(args.host, emails, args.password)
    if args.admin_password:
        approve_pending(args.host, emails, args.admin_email, args.admin_password)
    else:
        print("No --admin-password given; approve the registrations from the super-admin dashboard")
    write_csv(args.outfile, emails, args.password)
    print("You can set FAME_TEST_USERS by running:")
    print(f"  export FAME_TEST_USERS=\"{','.join(e + ':' + args.password for e in emails)}\"")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
