#!/usr/bin/env python3
"""
Dev helper: exercise a locally running relay.

Webhook mode (default) builds a LINE-style webhook delivery, signs it with
CHANNEL_SECRET the same way LINE does and POST-s it to /webhook. Form mode
(--form) POST-s a multipart submission to /email with optional files.

Usage
-----
# Text message from user U-test, targeting localhost:3000
python scripts/send_test_webhook.py

# A sticker event without a source user id
python scripts/send_test_webhook.py --kind sticker --no-user

# Form submission with two attachments
python scripts/send_test_webhook.py --form --file photo.jpg --file voice.m4a

# Print the signed payload without sending it
python scripts/send_test_webhook.py --dry-run

Environment / .env
------------------
CHANNEL_SECRET   Signs the webhook body (required for webhook mode).
PORT             Default port for --url (default: 3000).

Media kinds (image, video, audio, file) reference a message id that only
LINE can serve, so the relay will report them as failed events unless
--message-id points at real content.
"""

import argparse
import base64
import hashlib
import hmac
import json
import os
import sys
import textwrap
import time
from pathlib import Path

import httpx
from dotenv import load_dotenv

_KINDS = ["text", "image", "video", "audio", "file", "sticker", "location"]


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------

def _build_message(kind: str, message_id: str, text: str) -> dict:
    message = {"type": kind, "id": message_id}
    if kind == "text":
        message["text"] = text
    elif kind == "sticker":
        message.update({"packageId": "446", "stickerId": "1988"})
    elif kind == "location":
        message.update({"title": "Tokyo", "latitude": 35.68, "longitude": 139.76})
    return message


def _build_webhook_payload(kind: str, message_id: str, text: str, user_id: str | None) -> dict:
    source = {"type": "user"}
    if user_id:
        source["userId"] = user_id
    return {
        "destination": "U-dev-bot",
        "events": [
            {
                "type": "message",
                "mode": "active",
                "timestamp": int(time.time() * 1000),
                "replyToken": "dev-reply-token",
                "source": source,
                "message": _build_message(kind, message_id, text),
            }
        ],
    }


def _sign(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


# ---------------------------------------------------------------------------
# Pretty printer
# ---------------------------------------------------------------------------

def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    if not response.content:
        return
    try:
        print(json.dumps(response.json(), indent=2, ensure_ascii=False))
    except ValueError:
        print(response.text)


# ---------------------------------------------------------------------------
# Senders
# ---------------------------------------------------------------------------

def _send_webhook(args, base_url: str) -> int:
    secret = args.secret or os.getenv("CHANNEL_SECRET", "")
    if not secret and not args.dry_run:
        print(
            "ERROR: No channel secret found.\n"
            "Set CHANNEL_SECRET in your environment or .env file, or pass --secret.",
            file=sys.stderr,
        )
        return 1

    payload = _build_webhook_payload(
        args.kind, args.message_id, args.text, None if args.no_user else args.user_id
    )
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    endpoint = f"{base_url}/webhook"

    print(f"Endpoint : {endpoint}")
    print(f"Kind     : {args.kind}")
    print(f"User     : {'(none)' if args.no_user else args.user_id}")

    if args.dry_run:
        print("\n[DRY RUN] Payload:")
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        if secret:
            print(f"\nX-Line-Signature: {_sign(body, secret)}")
        return 0

    response = httpx.post(
        endpoint,
        content=body,
        headers={"Content-Type": "application/json", "X-Line-Signature": _sign(body, secret)},
        timeout=30,
    )
    _print_response(response)
    return 0 if response.status_code == 200 else 1


def _send_form(args, base_url: str) -> int:
    files = []
    for index, name in enumerate(args.file or [], start=1):
        path = Path(name)
        if not path.exists():
            print(f"ERROR: File not found: {path}", file=sys.stderr)
            return 1
        files.append((f"attachment{index}", (path.name, path.read_bytes())))
        print(f"Attaching file: {path} ({path.stat().st_size:,} bytes)")

    endpoint = f"{base_url}/email"
    data = {"from": args.from_email, "subject": args.subject, "text": args.text}

    print(f"Endpoint : {endpoint}")
    print(f"From     : {args.from_email}")
    print(f"Subject  : {args.subject}")

    if args.dry_run:
        print("\n[DRY RUN] Fields:")
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return 0

    response = httpx.post(endpoint, data=data, files=files or None, timeout=60)
    _print_response(response)
    return 0 if response.status_code == 200 else 1


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")

    parser = argparse.ArgumentParser(
        prog="send_test_webhook.py",
        description=textwrap.dedent("""\
            Send a signed test webhook (or a form submission) to the relay.
        """),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--url",
        default=f"http://localhost:{os.getenv('PORT', '3000')}",
        help="Relay base URL (default: http://localhost:$PORT)",
    )
    parser.add_argument("--form", action="store_true", help="Send a form submission to /email.")
    parser.add_argument("--kind", default="text", choices=_KINDS, help="Webhook message kind.")
    parser.add_argument("--message-id", default="100001", help="Webhook message id.")
    parser.add_argument("--user-id", default="U-test", help="Webhook source user id.")
    parser.add_argument("--no-user", action="store_true", help="Omit the source user id.")
    parser.add_argument("--text", default="テストメッセージ", help="Message or form body text.")
    parser.add_argument("--from", dest="from_email", default="sender@example.com")
    parser.add_argument("--subject", default="Test submission")
    parser.add_argument(
        "--file",
        action="append",
        metavar="PATH",
        help="File to attach in --form mode (repeatable).",
    )
    parser.add_argument("--secret", default=None, help="Override CHANNEL_SECRET.")
    parser.add_argument("--dry-run", action="store_true", help="Print without sending.")

    args = parser.parse_args()
    base_url = args.url.rstrip("/")

    try:
        if args.form:
            return _send_form(args, base_url)
        return _send_webhook(args, base_url)
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {base_url}\n"
            "Is the relay running? Start it with:\n"
            "  cd backend && python -m relay.main",
            file=sys.stderr,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
