"""
Central configuration for the Sticker Segmentation System.
Override any value via environment variables prefixed with STK_
e.g., STK_HANDLE_SIZE=24
"""

import os
from pathlib import Path


def _rgba(value: str):
    return tuple(int(c) for c in value.split(","))


# ─── Paths ────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).parent.parent
CHECKPOINT_DIR = PROJECT_ROOT / "models" / "checkpoints"
OUTPUT_DIR = PROJECT_ROOT / "outputs"

# ─── SAM2 Configuration ──────────────────────────────────────
SAM2_CHECKPOINT = os.getenv("STK_SAM2_CHECKPOINT", "sam2.1_hiera_large.pt")
SAM2_CONFIG = os.getenv("STK_SAM2_CONFIG", "configs/sam2.1/sam2.1_hiera_l.yaml")
SAM2_HF_MODEL_ID = os.getenv("STK_SAM2_MODEL", "facebook/sam2.1-hiera-large")

# ─── Device Configuration ────────────────────────────────────
DEVICE = os.getenv("STK_DEVICE", "auto")
DTYPE = os.getenv("STK_DTYPE", "bfloat16")  # bfloat16, float16, or float32

# ─── Media Object Geometry ───────────────────────────────────
HANDLE_SIZE = int(os.getenv("STK_HANDLE_SIZE", "20"))
BORDER_COLOR = (255, 192, 203, 255)  # pink
BORDER_WIDTH = 5
HANDLE_COLOR = (0, 0, 255, 255)  # blue

# ─── Overlay / Input Feedback ────────────────────────────────
MASK_HIGHLIGHT_RGBA = _rgba(os.getenv("STK_MASK_HIGHLIGHT", "0,0,255,100"))
INPUT_MARKER_SIZE = int(os.getenv("STK_INPUT_MARKER_SIZE", "10"))
INPUT_MARKER_RGBA = (255, 255, 0, 255)

# ─── Cutout Configuration ────────────────────────────────────
CUTOUT_RESAMPLE = os.getenv("STK_CUTOUT_RESAMPLE", "0") == "1"
CUTOUT_PADDING = int(os.getenv("STK_CUTOUT_PADDING", "10"))

# ─── UI Configuration ────────────────────────────────────────
INTERACTIVE_FIGSIZE = (12, 8)
MAX_IMAGE_SIZE = int(os.getenv("STK_MAX_IMAGE_SIZE", "1024"))


def get_device():
    """Resolve the actual torch device."""
    import torch
    if DEVICE == "auto":
        if torch.cuda.is_available():
            return torch.device("cuda")
        elif hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
            return torch.device("mps")
        return torch.device("cpu")
    return torch.device(DEVICE)


def get_dtype():
    """Resolve the torch dtype."""
    import torch
    dtype_map = {
        "bfloat16": torch.bfloat16,
        "float16": torch.float16,
        "float32": torch.float32,
    }
    return dtype_map.get(DTYPE, torch.bfloat16)


def print_config():
    """Print current configuration for debugging."""
    print("=" * 60)
    print("Sticker Segmentation Configuration")
    print("=" * 60)
    print(f"  Device:              {DEVICE}")
    print(f"  DType:               {DTYPE}")
    print(f"  SAM2 Model:          {SAM2_HF_MODEL_ID}")
    print(f"  SAM2 Checkpoint:     {SAM2_CHECKPOINT}")
    print(f"  Handle Size:         {HANDLE_SIZE}px")
    print(f"  Mask Highlight:      {MASK_HIGHLIGHT_RGBA}")
    print(f"  Cutout Resample:     {CUTOUT_RESAMPLE}")
    print("=" * 60)
