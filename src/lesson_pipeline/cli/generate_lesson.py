"""CLI for generating a lesson from a text file.

Reads a source document, runs the full lesson pipeline against the configured
LLM and writes the assembled lesson as JSON. Progress is printed as it
happens, either as plain lines or as server-sent-event frames.

Usage:
    python -m lesson_pipeline.cli.generate_lesson \\
        --input article.txt \\
        --tier B1 \\
        --kind discussion \\
        --output output/lesson.json

Args:
    --input: Plain text file with the source document
    --tier: Proficiency tier (A1..C1, T1..T5 or beginner..advanced); suggested from the text when omitted
    --kind: Artifact kind (discussion, grammar, pronunciation, travel, business)
    --language: Target language (default: English)
    --title / --url: Optional source metadata
    --output: Output JSON file (default: stdout)
    --sse: Print progress as server-sent-event frames
    --log-file: Also write logs to this file
    --loguru: Route logging through loguru

Examples:
    # Grammar lesson for an upper-intermediate learner
    python -m lesson_pipeline.cli.generate_lesson \\
        --input news.txt --tier B2 --kind grammar --output grammar.json

    # Stream events, tier suggested from the text
    python -m lesson_pipeline.cli.generate_lesson --input story.txt --sse
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from lesson_pipeline.constants import LOG_FORMAT, LOG_LEVEL
from lesson_pipeline.content_validator import ContentValidator
from lesson_pipeline.models.events import CompleteEvent, ErrorEvent
from lesson_pipeline.models.schema import (
    GenerationRequest,
    ProgressUpdate,
    SourceDocument,
    SourceMetadata,
    Tier,
)
from lesson_pipeline.orchestrator import ARTIFACT_PLANS, LessonPipeline
from lesson_pipeline.utils.llm_client import LLMClient
from lesson_pipeline.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


def print_progress(update: ProgressUpdate) -> None:
    section = f" [{update.section}]" if update.section else ""
    print(f"{update.progress:3d}% {update.phase}{section}: {update.step}", flush=True)


def write_artifact(record: dict, output: Optional[Path]) -> None:
    text = json.dumps(record, ensure_ascii=False, indent=2)
    if output is None:
        print(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", encoding="utf-8") as f:
        f.write(text)
    logger.info(f"Saved lesson: {output}")


async def run(args: argparse.Namespace) -> int:
    text = args.input.read_text(encoding="utf-8")
    document = SourceDocument(
        text=text,
        metadata=SourceMetadata(title=args.title, url=args.url),
    )
    tier = Tier.parse(args.tier) if args.tier else ContentValidator().suggest_tier(document)

    request = GenerationRequest(
        document=document,
        tier=tier,
        target_language=args.language,
        artifact_kind=args.kind,
    )
    llm_client = LLMClient()
    pipeline = LessonPipeline(llm_client)

    logger.info(
        f"Generating {args.kind} lesson at {tier.value} from {args.input} "
        f"({len(text.split())} words)"
    )

    exit_code = 1
    async for event in pipeline.stream(request):
        if args.sse:
            print(event.to_sse(), end="", flush=True)
        elif isinstance(event, ErrorEvent):
            state = event.progress_state
            print(
                f"FAILED at {state.progress}% ({state.phase}): {event.error.message} "
                f"[{event.error.error_id}]",
                file=sys.stderr,
            )
        elif not isinstance(event, CompleteEvent):
            print_progress(
                ProgressUpdate(
                    step=event.step, progress=event.progress, phase=event.phase, section=event.section
                )
            )

        if isinstance(event, CompleteEvent):
            write_artifact(event.artifact.to_record(), args.output)
            exit_code = 0

    usage = llm_client.get_usage_summary()
    logger.info(f"Token usage: {usage}")
    return exit_code


def main():
    parser = argparse.ArgumentParser(
        description="Generate a lesson from a source document",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--input", type=Path, required=True, help="Source text file")
    parser.add_argument("--tier", help="Proficiency tier (A1..C1); suggested from the text if omitted")
    parser.add_argument(
        "--kind",
        default="discussion",
        help=f"Artifact kind ({', '.join(ARTIFACT_PLANS)}; default: discussion)",
    )
    parser.add_argument("--language", default="English", help="Target language (default: English)")
    parser.add_argument("--title", help="Source document title")
    parser.add_argument("--url", help="Source document URL")
    parser.add_argument("--output", type=Path, help="Output JSON file (default: stdout)")
    parser.add_argument("--sse", action="store_true", help="Print events as server-sent-event frames")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")
    parser.add_argument("--loguru", action="store_true", help="Route logging through loguru")

    args = parser.parse_args()

    configure_logging(
        level=LOG_LEVEL,
        log_file=args.log_file,
        json_format=LOG_FORMAT == "json",
        use_loguru=args.loguru,
    )

    if not args.input.exists():
        logger.error(f"Input file not found: {args.input}")
        sys.exit(1)
    if args.tier:
        try:
            Tier.parse(args.tier)
        except ValueError as e:
            logger.error(str(e))
            sys.exit(1)

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
