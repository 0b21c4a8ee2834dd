"""
Model loader with lazy initialization and caching.
Downloads checkpoints on first use, keeps models in GPU memory.
"""

import logging
import warnings
from pathlib import Path

from . import config

# SAM2 may warn when optional C++ extension (_C) is missing; safe to ignore
warnings.filterwarnings(
    "ignore",
    message=".*cannot import name '_C'.*",
    category=UserWarning,
    module="sam2",
)

logger = logging.getLogger(__name__)


def resolve_device(execution_hint: str = None):
    """Map an execution hint ('cuda', 'mps', 'cpu', 'auto', None) to a torch device."""
    import torch
    if execution_hint is None or execution_hint == "auto":
        return config.get_device()
    return torch.device(execution_hint)


def _checkpoint_path(location: str) -> Path:
    path = Path(location)
    if not path.is_absolute():
        path = config.CHECKPOINT_DIR / path
    return path


def _build_from_checkpoint(checkpoint_path: Path, device):
    from sam2.build_sam import build_sam2
    from sam2.sam2_image_predictor import SAM2ImagePredictor

    if not checkpoint_path.exists():
        raise FileNotFoundError(
            f"SAM2 checkpoint not found at {checkpoint_path}. "
            f"Download it from https://github.com/facebookresearch/sam2"
        )
    sam2_model = build_sam2(config.SAM2_CONFIG, str(checkpoint_path), device=str(device))
    return SAM2ImagePredictor(sam2_model)


class ModelLoader:
    """Singleton-style loader that caches predictors after first load."""

    _sam2_predictors = {}

    @classmethod
    def get_sam2_predictor(cls, model_location: str = None, execution_hint: str = None):
        """Load a SAM2 image predictor.

        Args:
            model_location: HuggingFace model id or a `.pt` checkpoint path
                (default: config.SAM2_HF_MODEL_ID)
            execution_hint: 'cuda', 'mps', 'cpu' or 'auto'
        """
        model_location = model_location or config.SAM2_HF_MODEL_ID
        device = resolve_device(execution_hint)
        key = (model_location, str(device))

        if key not in cls._sam2_predictors:
            logger.info("[ModelLoader] Loading SAM2 Image Predictor (%s)...", model_location)

            if model_location.endswith(".pt"):
                predictor = _build_from_checkpoint(_checkpoint_path(model_location), device)
            else:
                from sam2.sam2_image_predictor import SAM2ImagePredictor
                # Try HuggingFace first, fall back to the local checkpoint
                try:
                    predictor = SAM2ImagePredictor.from_pretrained(model_location, device=device)
                except Exception as e:
                    logger.warning(
                        "[ModelLoader] HuggingFace load failed (%s), trying %s", e, config.SAM2_CHECKPOINT
                    )
                    predictor = _build_from_checkpoint(_checkpoint_path(config.SAM2_CHECKPOINT), device)

            cls._sam2_predictors[key] = predictor
            logger.info("[ModelLoader] SAM2 Predictor loaded on %s", device)

        return cls._sam2_predictors[key]
