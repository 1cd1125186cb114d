"""Entry point for the EPUB translator."""

import argparse
import asyncio
import logging
import sys

from src.config import load_config
from src.epub.archive import StructuralDecodeError
from src.pipeline.job import clear_all_state, run_translation_job
from src.storage.database import StoreError


def _print_progress(percent: int, message: str) -> None:
    print(f"[{percent:3d}%] {message}")


def main() -> None:
    """Translate an EPUB, or clear saved state with --clear."""
    parser = argparse.ArgumentParser(description="Translate an EPUB with a remote LLM.")
    parser.add_argument("epub", nargs="?", help="Path to the EPUB file to translate")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    parser.add_argument("--output", help="Output EPUB path")
    parser.add_argument(
        "--clear", action="store_true", help="Delete saved progress and cached chunks"
    )
    args = parser.parse_args()

    config = load_config(args.config)
    logging.basicConfig(
        level=config.logging.level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.clear:
        asyncio.run(clear_all_state(config))
        print("Saved progress and cached chunks cleared.")
        return

    if not args.epub:
        parser.error("an EPUB path is required unless --clear is given")

    try:
        output = asyncio.run(
            run_translation_job(
                config,
                args.epub,
                output_path=args.output,
                on_progress=_print_progress,
            )
        )
    except (ValueError, FileNotFoundError, StructuralDecodeError, StoreError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(f"Translated EPUB written to {output}")


if __name__ == "__main__":
    main()
