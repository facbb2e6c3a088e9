"""
main.py — developer runner for the analysis client.

Runs one request against the configured models and prints the JSON result,
handy for checking a model list or an API key without the app.

Usage:
  python main.py image photo.jpg "left shoulder, sharp pain"
  python main.py text "stiff lower back after sitting all day"
  python main.py ask "Should I use heat or ice?"
  python main.py models [--vision]
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import config
from analysis_client import build_client

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=logging.INFO,
    handlers=[logging.StreamHandler(sys.stderr)],
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SmartHeal analysis runner")
    sub = parser.add_subparsers(dest="command", required=True)

    p_image = sub.add_parser("image", help="analyse a photo")
    p_image.add_argument("path")
    p_image.add_argument("hint", nargs="?", default="")

    p_text = sub.add_parser("text", help="analyse a text description")
    p_text.add_argument("description")

    p_ask = sub.add_parser("ask", help="ask a follow-up question")
    p_ask.add_argument("question")
    p_ask.add_argument("--context", default=None)

    p_models = sub.add_parser("models", help="list free OpenRouter models")
    p_models.add_argument("--vision", action="store_true", help="only image-capable models")
    return parser


async def run(args: argparse.Namespace) -> int:
    if args.command == "models":
        if not config.OPENROUTER_API_KEY:
            logger.error("OPENROUTER_API_KEY is not set")
            return 1
        from providers.openrouter_provider import discover_free_models
        models = await discover_free_models(
            config.OPENROUTER_API_KEY,
            base_url=config.OPENROUTER_BASE_URL,
            vision_only=args.vision,
        )
        for m in models:
            print(f"{m['id']:<60} {'vision' if m['vision'] else 'text':<7} {m['context']}")
        return 0

    client = build_client()
    if args.command == "image":
        result = await client.analyze_image(Path(args.path).read_bytes(), args.hint)
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    elif args.command == "text":
        result = await client.analyze_text(args.description)
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(await client.ask_question(args.question, args.context))
    return 0


def main() -> None:
    args = _parser().parse_args()
    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
