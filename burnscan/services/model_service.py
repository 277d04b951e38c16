import hashlib
import logging
import os
from typing import List, Optional, Sequence

import numpy as np
import torch
from huggingface_hub import hf_hub_download

from burnscan.config import BURN_MODEL_PATH, BURN_LABELS_PATH, BURN_MODEL_REPO
from burnscan.exceptions import ConfigurationError
from burnscan.services.label_canonicalizer import label_canonicalizer

logger = logging.getLogger(__name__)


class BurnModelService:
    """
    Hosts the TorchScript burn classifier and its label file.

    The model is lazy loaded on first use so that the API can start (and
    report health) without a checkpoint on disk.
    """

    def __init__(self, model_path: str = BURN_MODEL_PATH, labels_path: str = BURN_LABELS_PATH,
                 model_repo: Optional[str] = BURN_MODEL_REPO):
        self.model_path = model_path
        self.labels_path = labels_path
        self.model_repo = model_repo

        self.model = None
        self.labels: List[str] = []
        if torch.cuda.is_available():
            self.device = "cuda"
        elif torch.backends.mps.is_available():
            self.device = "mps"
        else:
            self.device = "cpu"

    def _resolve(self, path: str) -> str:
        if os.path.exists(path):
            return path
        if not self.model_repo:
            raise ConfigurationError(f"File not found: {path} (set BURN_MODEL_REPO to download it)")
        logger.info(f"Downloading {os.path.basename(path)} from {self.model_repo}...")
        try:
            return hf_hub_download(
                repo_id=self.model_repo,
                filename=os.path.basename(path),
                token=os.getenv("HF_TOKEN"),
            )
        except Exception as e:
            raise ConfigurationError(f"Failed to download {path} from {self.model_repo}: {e}") from e

    def _load_model(self):
        if self.model is None:
            model_file = self._resolve(self.model_path)
            labels_file = self._resolve(self.labels_path)

            with open(model_file, "rb") as f:
                content = f.read()
            logger.info(f"Loading burn model from {model_file} on {self.device} "
                        f"(bytes={len(content)}, md5={hashlib.md5(content).hexdigest()})")

            labels = label_canonicalizer.load_labels(labels_file)
            try:
                model = torch.jit.load(model_file, map_location=self.device)
            except Exception as e:
                logger.error(f"Failed to load burn model: {e}")
                raise ConfigurationError(f"Cannot load model {model_file}: {e}") from e
            model.eval()

            self.labels = labels
            self.model = model
            logger.info("Burn model loaded successfully.")

    def is_available(self) -> bool:
        try:
            self._load_model()
        except ConfigurationError as e:
            logger.warning(f"Burn model unavailable: {e}")
            return False
        return True

    def forward(self, tensor: np.ndarray, mean: Sequence[float], std: Sequence[float]) -> List[float]:
        """
        Forward pass on a normalized 1 x 3 x H x W tensor; returns the logits.
        mean/std are already applied to the tensor.
        """
        self._load_model()
        inputs = torch.from_numpy(tensor).to(self.device)
        with torch.no_grad():
            outputs = self.model(inputs)
        if isinstance(outputs, (tuple, list)):
            outputs = outputs[0]
        return outputs.reshape(-1).float().cpu().tolist()


# Global instance
model_service = BurnModelService()
