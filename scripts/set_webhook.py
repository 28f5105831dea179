#!/usr/bin/env python
"""Script to register (or remove) the bot's Telegram webhook."""
from __future__ import annotations

import argparse
import asyncio

from videobot.config import get_settings
from videobot.services.transport import TelegramClient


def webhook_url(domain: str, token: str) -> str:
    domain = domain.rstrip("/")
    if not domain.startswith(("http://", "https://")):
        domain = f"https://{domain}"
    return f"{domain}/webhook/{token}"


async def run(args: argparse.Namespace) -> None:
    settings = get_settings()
    client = TelegramClient(token=settings.bot_token, base_url=settings.telegram_api_url)
    try:
        if args.delete:
            await client.delete_webhook(drop_pending_updates=args.drop_pending)
            print("Webhook removed")
            return
        url = webhook_url(args.domain, settings.bot_token)
        await client.set_webhook(
            url,
            secret_token=settings.webhook_secret,
            drop_pending_updates=args.drop_pending,
        )
        print(f"Webhook set to {url.replace(settings.bot_token, '<token>')}")
    finally:
        await client.aclose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Register the VideoBot Telegram webhook")
    parser.add_argument("--domain", help="Public base URL, e.g. https://videobot.example.com")
    parser.add_argument("--delete", action="store_true", help="Remove the webhook instead")
    parser.add_argument("--drop_pending", action="store_true", help="Discard updates queued at Telegram")
    args = parser.parse_args()
    if not args.delete and not args.domain:
        parser.error("--domain is required unless --delete is given")
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
