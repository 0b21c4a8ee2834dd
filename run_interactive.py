#!/usr/bin/env python3
"""
Interactive Sticker Extraction

Usage:
    # Click or scribble on the object, press Enter to save the sticker:
    python run_interactive.py --image photo.jpg --output ./outputs/photo_sticker.png

    # Crop the sticker to the selection:
    python run_interactive.py --image photo.jpg --trim

    # With a local checkpoint on CPU:
    python run_interactive.py --image photo.jpg --model sam2.1_hiera_large.pt --device cpu
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sticker_system import config
from sticker_system.cutout import CutoutExtractor
from sticker_system.engine import SAM2Engine
from sticker_system.media import ImageObject
from sticker_system.selector import InteractiveStickerSelector
from sticker_system.session import SegmentationSession


def main():
    parser = argparse.ArgumentParser(
        description="Interactive click/scribble sticker extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--image", type=str, required=True,
        help="Source image path"
    )
    parser.add_argument(
        "--output", type=str, default=None,
        help="Where to save the sticker PNG (default: outputs/<stem>_sticker.png)"
    )
    parser.add_argument(
        "--model", type=str, default=None,
        help=f"HuggingFace model id or .pt checkpoint (default: {config.SAM2_HF_MODEL_ID})"
    )
    parser.add_argument(
        "--device", type=str, default=None,
        help="cuda, mps, cpu or auto (default: auto)"
    )
    parser.add_argument(
        "--max-size", type=int, default=config.MAX_IMAGE_SIZE,
        help="Resize the image to this max dimension before segmenting"
    )
    parser.add_argument(
        "--trim", action="store_true",
        help="Crop the sticker to the selected region"
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Debug logging"
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    image_path = Path(args.image)
    if not image_path.exists():
        print(f"Error: image not found: {image_path}")
        sys.exit(1)

    config.print_config()

    media = ImageObject.from_path(str(image_path), max_size=args.max_size)
    print(f"Loaded {image_path.name} ({int(media.width)}x{int(media.height)})")

    engine = SAM2Engine()
    print("Loading segmentation model...")
    asyncio.run(engine.initialize(args.model, args.device))

    session = SegmentationSession(engine)
    selector = InteractiveStickerSelector(session, extractor=CutoutExtractor(), trim=args.trim)
    artifact = selector.select_sticker(media, title=str(image_path))

    if artifact is None:
        print("Cancelled or no region selected.")
        return

    output = Path(args.output) if args.output else config.OUTPUT_DIR / f"{image_path.stem}_sticker.png"
    artifact.save(output)
    print(f"Sticker saved to: {output} ({artifact.width}x{artifact.height})")


if __name__ == "__main__":
    main()
