"""
Terminal client for the fortune API.

Usage:
    mbti-fortune --mbti INTJ --concern "발표가 걱정돼요"
    mbti-fortune --mbti enfp --preset 2 --url http://localhost:8000
"""

import argparse
import sys

import httpx

from .client_view import FortuneView
from .models import MBTI_TYPES, PRESET_CONCERNS

DEFAULT_URL = "http://localhost:8000"


def build_parser():
    parser = argparse.ArgumentParser(prog="mbti-fortune", description="오늘의 MBTI 점괘 듣기")
    parser.add_argument("--mbti", default="", help="MBTI type, e.g. INTJ")
    parser.add_argument("--concern", default="", help="지금의 상황이나 고민")
    parser.add_argument(
        "--preset",
        type=int,
        choices=range(1, len(PRESET_CONCERNS) + 1),
        help="use one of the preset concerns instead of --concern",
    )
    parser.add_argument("--url", default=DEFAULT_URL, help=f"API base URL (default: {DEFAULT_URL})")
    parser.add_argument("--list", action="store_true", help="list MBTI types and presets, then exit")
    return parser


def main(argv=None, http=None):
    args = build_parser().parse_args(argv)

    if args.list:
        print("MBTI:", " ".join(MBTI_TYPES))
        for i, preset in enumerate(PRESET_CONCERNS, 1):
            print(f"{i}. {preset}")
        return 0

    mbti = args.mbti.strip().upper()
    if mbti and mbti not in MBTI_TYPES:
        print(f"❌ Unknown MBTI type: {args.mbti}", file=sys.stderr)
        return 2

    owns_client = http is None
    if owns_client:
        http = httpx.Client(base_url=args.url, timeout=None)
    try:
        view = FortuneView(http)
        view.select_type(mbti)
        view.set_concern(args.concern)
        if args.preset:
            view.apply_preset(args.preset - 1)
        ok = view.submit()
        print(view.render())
        return 0 if ok else 1
    finally:
        if owns_client:
            http.close()


if __name__ == "__main__":
    sys.exit(main())
