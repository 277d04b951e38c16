import logging
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from burnscan.burn_data import BURN_NOT_DETECTED
from burnscan.config import DEBUG_BYPASS_SKIN_CHECK
from burnscan.exceptions import ConfigurationError
from burnscan.models import DecisionThresholds
from burnscan.services.color_gate import ColorFeatures, ColorGate
from burnscan.services.image_preprocess_service import PixelSource, image_preprocess_service
from burnscan.services.label_canonicalizer import label_canonicalizer
from burnscan.services.multiview_aggregator import ForwardPass, MultiViewResult, multiview_aggregator
from burnscan.services.statistical_gate import statistical_gate

logger = logging.getLogger(__name__)


class DecisionState(str, Enum):
    INIT = "init"
    COLOR_GATED = "color_gated"
    MULTI_VIEW_SCORED = "multi_view_scored"
    STATISTICALLY_GATED = "statistically_gated"
    LABELED = "labeled"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Diagnostics:
    skin_fraction: float
    red_on_skin_fraction: float
    largest_blob_fraction: float
    entropy: float
    top_index: int
    top: float
    second: float
    margin: float
    uniform_gap: float
    jsd: float
    scheme_index: int
    scheme_name: str
    raw_label: Optional[str]
    canonical_label: Optional[str]
    picked_probs: Tuple[float, ...]
    failed_checks: Tuple[str, ...]


@dataclass(frozen=True)
class ClassificationResult:
    final_label: str
    state: DecisionState
    trace: Tuple[DecisionState, ...]
    diagnostics: Diagnostics

    @property
    def detected(self) -> bool:
        return self.state == DecisionState.ACCEPTED

    def log_line(self) -> str:
        d = self.diagnostics
        probs = ", ".join(f"{p:.2f}" for p in d.picked_probs)
        return (
            f"skin={d.skin_fraction:.3f} redOnSkin={d.red_on_skin_fraction:.3f} blobFrac={d.largest_blob_fraction:.3f} "
            f"H={d.entropy:.3f} top={d.top:.3f} margin={d.margin:.3f} "
            f"topOverUniform={d.uniform_gap:.3f} JSD={d.jsd:.3f} "
            f"raw={d.raw_label} -> {self.final_label} | pickedProbs=[{probs}]"
        )

    def to_dict(self) -> dict:
        return {
            "final_label": self.final_label,
            "detected": self.detected,
            "state": self.state.value,
            "trace": [s.value for s in self.trace],
            "diagnostics": asdict(self.diagnostics),
        }


class DecisionEngine:
    """
    Single-pass open-set decision over one image.

    Init -> ColorGated -> MultiViewScored -> StatisticallyGated -> Labeled
    -> Accepted | Rejected

    Acceptance needs every check to pass: a canonical label, the three color
    evidence minimums, the entropy ceiling, direct or rule-based confidence,
    and orig/flip consistency. A failed check is an ordinary rejection, not an
    error; only bad input and inference failures raise.

    The engine holds configuration only, so one instance can serve
    concurrent requests.
    """

    def __init__(self, forward_pass: ForwardPass, labels: Sequence[str],
                 thresholds: Optional[DecisionThresholds] = None,
                 bypass_skin_check: bool = DEBUG_BYPASS_SKIN_CHECK):
        if not callable(forward_pass):
            raise ConfigurationError("forward_pass must be callable")
        if not labels:
            raise ConfigurationError("Label list is empty")
        if any(not isinstance(label, str) or not label.strip() for label in labels):
            raise ConfigurationError(f"Label list contains blank entries: {list(labels)}")
        if thresholds is None:
            thresholds = DecisionThresholds()
        if not isinstance(thresholds, DecisionThresholds):
            raise ConfigurationError(f"Expected DecisionThresholds, got {type(thresholds).__name__}")

        self.forward_pass = forward_pass
        self.labels = tuple(label.strip() for label in labels)
        self.thresholds = thresholds
        self.bypass_skin_check = bypass_skin_check
        self.color_gate = ColorGate(thresholds.analysis_size)

        if bypass_skin_check:
            logger.warning("Skin check bypass is enabled; skin_fraction will be forced to 1.0")

    def classify(self, source: PixelSource) -> ClassificationResult:
        """
        Classifies one image. Raises InvalidInput for unusable pixels and
        InferenceFailure when the forward pass fails.
        """
        trace = [DecisionState.INIT]
        pixels = image_preprocess_service.to_pixel_array(source)

        features = self.color_gate.color_features(pixels)
        if self.bypass_skin_check:
            features = replace(features, skin_fraction=1.0)
        trace.append(DecisionState.COLOR_GATED)

        view = image_preprocess_service.center_crop_and_resize(pixels, self.thresholds.model_input_size)
        multiview = multiview_aggregator.aggregate(view, self.forward_pass, len(self.labels))
        trace.append(DecisionState.MULTI_VIEW_SCORED)

        result = self.decide(features, multiview, trace)
        logger.info(result.log_line())
        return result

    def decide(self, features: ColorFeatures, multiview: MultiViewResult,
               trace: Optional[List[DecisionState]] = None) -> ClassificationResult:
        """Decision step for callers that already hold the color and model evidence."""
        trace = list(trace) if trace is not None else [DecisionState.INIT, DecisionState.COLOR_GATED, DecisionState.MULTI_VIEW_SCORED]
        t = self.thresholds

        gate = statistical_gate.evaluate(multiview.canonical, multiview.orig, multiview.flip, t)
        trace.append(DecisionState.STATISTICALLY_GATED)

        top_index = gate.top2.top_index
        raw_label = self.labels[top_index] if top_index < len(self.labels) else None
        canonical = label_canonicalizer.canonicalize(top_index, raw_label, len(self.labels))
        trace.append(DecisionState.LABELED)

        failed = []
        if canonical is None:
            failed.append("label")
        if features.skin_fraction < t.min_skin_fraction:
            failed.append("skin_fraction")
        if features.red_on_skin_fraction < t.min_red_on_skin:
            failed.append("red_on_skin")
        if features.largest_blob_fraction < t.min_largest_blob_frac:
            failed.append("largest_blob")
        if not gate.entropy_ok:
            failed.append("entropy")
        if not (gate.accept_direct or gate.accept_by_rule):
            failed.append("confidence")
        if not gate.tta_consistent:
            failed.append("tta_consistency")

        if failed:
            state = DecisionState.REJECTED
            final_label = BURN_NOT_DETECTED
        else:
            state = DecisionState.ACCEPTED
            final_label = canonical
        trace.append(state)

        diagnostics = Diagnostics(
            skin_fraction=features.skin_fraction,
            red_on_skin_fraction=features.red_on_skin_fraction,
            largest_blob_fraction=features.largest_blob_fraction,
            entropy=gate.entropy,
            top_index=top_index,
            top=gate.top2.top,
            second=gate.top2.second,
            margin=gate.margin,
            uniform_gap=gate.uniform_gap,
            jsd=gate.jsd,
            scheme_index=multiview.scheme_index,
            scheme_name=multiview.scheme_name,
            raw_label=raw_label,
            canonical_label=canonical,
            picked_probs=tuple(float(p) for p in multiview.canonical),
            failed_checks=tuple(failed),
        )
        return ClassificationResult(
            final_label=final_label,
            state=state,
            trace=tuple(trace),
            diagnostics=diagnostics,
        )
