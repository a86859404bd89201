#!/usr/bin/env python3
"""
Reset a user's password in the Reactivities SQLite database.

This script DOES NOT read or reveal any existing passwords. It sets a
new password hash (PBKDF2-HMAC-SHA256, format "salthex$hashhex") for the
specified user email and rotates the user's security stamp, which
invalidates outstanding email confirmation and password reset codes.

Usage:
    python reset_password.py --db ./reactivities.db --email bob@test.com --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import getpass
import os
import sqlite3
import sys
from typing import List, Optional

from reactivities_api.app.core.security import hash_password, new_security_stamp


def reset_password(db_path: str, email: str, new_password: str) -> bool:
    """Store a new password hash for ``email``.  Returns False when the user does not exist."""
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        cur.execute("SELECT id FROM users WHERE email = ? COLLATE NOCASE", (email,))
        if not cur.fetchone():
            return False
        cur.execute(
            "UPDATE users SET password = ?, security_stamp = ? WHERE email = ? COLLATE NOCASE",
            (hash_password(new_password), new_security_stamp(), email),
        )
        conn.commit()
        return True
    finally:
        conn.close()


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Reset a Reactivities user password (SQLite).")
    ap.add_argument("--db", required=True, help="Path to SQLite DB file (e.g., ./reactivities.db)")
    ap.add_argument("--email", required=True, help="User email to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args(argv)

    if not os.path.exists(args.db):
        print(f"[!] DB not found: {args.db}", file=sys.stderr)
        return 1

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if not new_password:
        print("[!] Empty password is not allowed.", file=sys.stderr)
        return 1

    if not reset_password(args.db, args.email, new_password):
        print(f"[!] No user found with email: {args.email}", file=sys.stderr)
        return 2
    print(f"[+] Password updated for user: {args.email}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
