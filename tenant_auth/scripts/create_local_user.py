"""
Script to create a user with its own account for local testing.

    python -m tenant_auth.scripts.create_local_user --email ada@example.com \
        --password 'Secret123!' --name Ada
"""

import argparse
import asyncio
import sys

import structlog

from tenant_auth.core.config import get_settings
from tenant_auth.core.database import async_session_factory, engine, init_db
from tenant_auth.core.logging import configure_logging
from tenant_auth.services.registration import register

log = structlog.get_logger()


async def create_user(email: str, password: str, name: str, account_name: str | None) -> int:
    await init_db()
    try:
        async with async_session_factory() as session:
            result = await register(session, email, password, name, account_name)
    finally:
        await engine.dispose()

    if result.failure:
        for message in result.errors:
            print(f"Error: {message}", file=sys.stderr)
        return 1

    account = result.data["account"]
    print(f"Created user {email} owning account '{account.name}' ({account.slug}).")
    print(f"Refresh token (shown once): {result.data['refresh_token']}")
    return 0


def run() -> None:
    parser = argparse.ArgumentParser(description="Create a local user and account.")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument("--password", required=True, help="Password for the user")
    parser.add_argument("--name", required=True, help="Display name")
    parser.add_argument("--account-name", default=None, help="Account name (default: \"<name>'s Account\")")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level, "text")
    sys.exit(asyncio.run(create_user(args.email, args.password, args.name, args.account_name)))


if __name__ == "__main__":
    run()
