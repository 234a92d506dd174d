#!/usr/bin/env python3
"""
Command line front-end: submit a Veo generation and follow it to completion.

Example:
    python cli.py --prompt "A lighthouse in a storm" --image ref1.png --image ref2.jpg
"""
import argparse
import asyncio
import json
import sys
from typing import List, Optional

from config import Config
from utils.logger import get_logger
from videos.controller import OperationLifecycleController
from videos.models import GenerateVideoRequest, LifecyclePhase, LifecycleState
from videos.references import MAX_CLIENT_REFERENCE_IMAGES, load_reference_images

logger = get_logger("cli")


def render_state(state: LifecycleState) -> None:
    """Print a one-line summary of the state, plus the status payload while polling."""
    line = f"[{state.phase.value}]"
    if state.operation_id:
        line += f" operation={state.operation_id}"
    if state.message:
        line += f" {state.message}"
    if state.error_message:
        line += f" error: {state.error_message}"
    print(line)
    if state.last_status is not None and state.phase in (LifecyclePhase.POLLING, LifecyclePhase.COMPLETED):
        print(json.dumps(state.last_status.raw, indent=2, default=str))


async def run(prompt: str, images: List[str], server: str, interval: float) -> LifecycleState:
    reference_images = load_reference_images(images, limit=MAX_CLIENT_REFERENCE_IMAGES)
    request = GenerateVideoRequest(prompt=prompt, reference_images=reference_images)

    async with OperationLifecycleController(base_url=server, poll_interval=interval) as controller:
        controller.add_listener(render_state)
        await controller.submit(request)
        return await controller.wait()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Generate a Veo video and poll the operation until it completes")
    parser.add_argument("--prompt", required=True, help="Text prompt describing the video")
    parser.add_argument("--image", action="append", default=[], help=f"Reference image file (up to {MAX_CLIENT_REFERENCE_IMAGES})")
    parser.add_argument("--server", default=Config.API_BASE_URL, help="Base URL of the generation API")
    parser.add_argument("--interval", type=float, default=Config.POLL_INTERVAL_SECONDS, help="Seconds between status polls")
    args = parser.parse_args(argv)

    try:
        final_state = asyncio.run(run(args.prompt, args.image, args.server, args.interval))
    except (ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130

    return 0 if final_state.phase == LifecyclePhase.COMPLETED else 1


if __name__ == "__main__":
    sys.exit(main())
