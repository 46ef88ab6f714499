"""Feed local image files through the batch pipeline of a running service.

Each positional argument is one item; join several files with commas to send
them as views of the same subject:

    python batch_analyze.py --selection all front.jpg,side.jpg wheel.png

`--storage-url` defaults to STORAGE_URL so the printed public URLs match the
service's bucket.
"""
import argparse
import asyncio
import json
import mimetypes
import os
from pathlib import Path
from typing import List, Optional

import httpx
from dotenv import load_dotenv

from models.batch_item import BatchImage, BatchStatus, Selection
from services.api_client import ApiClient
from services.batch_orchestrator import BatchOrchestrator
from utils.config import DEFAULT_BUCKET
from utils.logging_config import configure_logging


def _load_images(group: str) -> List[BatchImage]:
    """Read every comma-separated path in `group` into a BatchImage."""
    images = []
    for raw in group.split(","):
        path = Path(raw.strip()).expanduser()
        content_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
        images.append(BatchImage(file_name=path.name, content_type=content_type, data=path.read_bytes()))
    return images


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("items", nargs="+", help="image path(s); comma-join files of one subject")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--storage-url", default=os.getenv("STORAGE_URL", ""))
    parser.add_argument("--bucket", default=os.getenv("STORAGE_BUCKET") or DEFAULT_BUCKET)
    parser.add_argument("--selection", choices=[s.value for s in Selection], default=Selection.PART.value)
    parser.add_argument("--context", default=None, help='category focus, e.g. "truck bed covers"')
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    """Upload and analyse every item sequentially; return a process exit code."""
    args = _parse_args(argv)
    if not args.storage_url:
        print("STORAGE_URL (or --storage-url) is required to build public image URLs.")
        return 2

    async with httpx.AsyncClient() as http_client:
        api = ApiClient(args.base_url, args.storage_url, http_client, bucket=args.bucket)
        orchestrator = BatchOrchestrator(api, prompt_context=args.context)
        for group in args.items:
            orchestrator.add_item(_load_images(group), Selection(args.selection))
        processed = await orchestrator.run()

    failed = 0
    for item in processed:
        names = ", ".join(image.file_name for image in item.images)
        print(f"[{item.status.value}] {names}")
        if item.status is BatchStatus.ERROR:
            failed += 1
            print(f"  error: {item.error}")
            continue
        for issue in item.quality_issues:
            print(f"  quality: {issue}")
        print("  " + json.dumps(item.result, indent=2).replace("\n", "\n  "))
        if item.detected_products:
            print(f"  products: {json.dumps(item.detected_products)}")
    return 1 if failed else 0


if __name__ == "__main__":
    load_dotenv()
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    raise SystemExit(asyncio.run(main()))
