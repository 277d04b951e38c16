import logging
from typing import Optional

from burnscan.models import DecisionThresholds
from burnscan.services.decision_engine import ClassificationResult, DecisionEngine
from burnscan.services.image_preprocess_service import PixelSource
from burnscan.services.model_service import BurnModelService, model_service

logger = logging.getLogger(__name__)


class BurnScanService:
    """
    Wires the hosted model into a DecisionEngine.

    The engine is built on first use, after the model and its labels have
    loaded, and reused for every later request.
    """

    def __init__(self, model: BurnModelService = model_service, thresholds: Optional[DecisionThresholds] = None):
        self.model = model
        self.thresholds = thresholds or DecisionThresholds()
        self._engine: Optional[DecisionEngine] = None

    def get_engine(self) -> DecisionEngine:
        if self._engine is None:
            self.model._load_model()
            self._engine = DecisionEngine(
                forward_pass=self.model.forward,
                labels=self.model.labels,
                thresholds=self.thresholds,
            )
        return self._engine

    def classify(self, source: PixelSource) -> ClassificationResult:
        return self.get_engine().classify(source)


burn_scan_service = BurnScanService()
