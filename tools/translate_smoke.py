"""Smoke test for the translation API round trip.

Usage:
  py tools/translate_smoke.py https://example.com/about/ page.html --lang ja
  cat page.html | py tools/translate_smoke.py https://example.com/ --lang fr --debug

It uses the same env loader as host apps (wovn_core.config.get_settings) and
prints the translated HTML to stdout; traces and diagnostic headers go to
stderr. The project token is never printed in full.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure repo root is importable when running `py tools/translate_smoke.py ...`.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from wovn_core.config import get_settings
from wovn_core.context import PageContext
from wovn_core.logging_setup import configure_logging
from wovn_core.services.translation import ApiTranslator


def _mask(token: str) -> str:
    if len(token) <= 4:
        return "*" * len(token)
    return token[:2] + "*" * (len(token) - 4) + token[-2:]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Send one HTML page to the translation API.")
    parser.add_argument("url", help="Absolute page URL the HTML was rendered for")
    parser.add_argument("html_file", nargs="?", help="HTML file (default: stdin)")
    parser.add_argument("--lang", required=True, help="Target language code")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode flags and diagnostic headers")
    parser.add_argument("--disable-cache", action="store_true", help="Force a unique cache key")
    args = parser.parse_args(argv)

    configure_logging()
    settings = get_settings()

    if args.html_file:
        body = Path(args.html_file).read_text(encoding="utf-8")
    else:
        body = sys.stdin.read()

    context = PageContext.from_url(args.url, args.lang, debug_mode=args.debug, disable_cache=args.disable_cache)
    outcome = ApiTranslator(settings, context).translate_with_outcome(body)

    print(f"api_url={settings.api_url} token={_mask(settings.project_token)}", file=sys.stderr)
    print(f"kind={outcome.kind.value} translated={outcome.translated} reason={outcome.reason}", file=sys.stderr)
    for line in context.traces:
        print(f"trace: {line}", file=sys.stderr)
    for name, value in context.custom_headers.items():
        print(f"header: {name}: {value}", file=sys.stderr)

    sys.stdout.write(outcome.body)
    return 0 if outcome.translated else 1


if __name__ == "__main__":
    raise SystemExit(main())
