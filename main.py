"""
Image agent - command line entry point.

Describes an image (local path or URL) with the configured vision provider,
or, with --measure, runs the size measurement plugin on an image URL.
"""

import argparse
import asyncio
import json
import sys

from core.di import container
from core.exceptions import ImageAgentError


async def run(image: str, measure: bool) -> dict:
    if measure:
        result = await container.get("size_plugin").measure_image(image)
        if isinstance(result, str):
            return {"formatted_response": result}
        return result.model_dump()
    result = await container.get("image_service").describe_image(image)
    return result.model_dump()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Describe or measure an image")
    parser.add_argument("image", help="Image path or URL")
    parser.add_argument("--measure", action="store_true", help="Use the size measurement plugin")
    args = parser.parse_args(argv)

    try:
        output = asyncio.run(run(args.image, args.measure))
    except KeyboardInterrupt:
        print("\n👋 Stopped by user")
        return 0
    except ImageAgentError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        return 1
    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
