"""Command line entry point.

    python -m stylist serve --port 8000
    python -m stylist generate --model model.jpg --product shirt.png \
        --prompt "The model wears this shirt" --mask mask.png --out styled.png
"""
import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

from stylist.config import GEMINI_API_KEY
from stylist.errors import StylistError
from stylist.images import data_url_to_part, load_upload, to_data_url
from stylist.logging_config import setup_logging
from stylist.session import ApiKeyStore, StylistSession


def _load_image(path: Path):
    content_type, _ = mimetypes.guess_type(path.name)
    return load_upload(path.read_bytes(), path.name, content_type)


def run_generate(args: argparse.Namespace) -> int:
    session = StylistSession(key_store=ApiKeyStore())
    if args.api_key:
        session.set_api_key(args.api_key)
    elif not session.api_key:
        session.api_key = GEMINI_API_KEY

    try:
        session.select_model(_load_image(args.model))
        session.select_product(_load_image(args.product))
        if args.mask:
            session.save_mask(to_data_url(args.mask.read_bytes(), "image/png"))
    except (OSError, StylistError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    session.set_prompt(args.prompt)

    result = asyncio.run(session.generate())
    if session.error or result is None:
        print(f"ERROR: {session.error}", file=sys.stderr)
        return 1

    _, data = data_url_to_part(result)
    args.out.write_bytes(data)
    print(f"Saved styled image to {args.out}")
    return 0


def run_serve(args: argparse.Namespace) -> int:
    from stylist.app import main as serve

    serve(host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stylist", description="AI Product Stylist")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the web client and API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=run_serve)

    generate = subparsers.add_parser("generate", help="Generate one styled image")
    generate.add_argument("--model", type=Path, required=True, help="Photo of the model")
    generate.add_argument("--product", type=Path, required=True, help="Photo of the product")
    generate.add_argument("--prompt", required=True, help="Styling instruction")
    generate.add_argument("--mask", type=Path, help="Black/white PNG; white marks the product to keep")
    generate.add_argument("--out", type=Path, default=Path("styled.png"))
    generate.add_argument("--api-key", help="Gemini API key (remembered for next time)")
    generate.set_defaults(func=run_generate)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
