import logging
from typing import List, Optional

from burnscan.burn_data import CANONICAL_BURN_LABELS, NON_BURN_SYNONYMS, SEVERITY_TEXT_CUES
from burnscan.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class LabelCanonicalizer:
    """
    Maps the classifier's top class onto one of the canonical burn labels.

    Rules, in priority order:
    1. A raw label naming a non-burn class rejects outright.
    2. A label file with exactly as many entries as canonical labels is
       trusted positionally.
    3. Otherwise the raw text is matched against the canonical names, then
       against ordinal cues ("1st", "second", ...).
    """

    def canonicalize(self, top_index: int, raw_label: Optional[str], label_count: int) -> Optional[str]:
        if raw_label is not None and self.is_non_burn(raw_label):
            return None

        if label_count == len(CANONICAL_BURN_LABELS):
            if 0 <= top_index < len(CANONICAL_BURN_LABELS):
                return CANONICAL_BURN_LABELS[top_index]
            return None

        return self.map_text(raw_label)

    def is_non_burn(self, raw_label: str) -> bool:
        return raw_label.strip().lower() in NON_BURN_SYNONYMS

    def map_text(self, raw_label: Optional[str]) -> Optional[str]:
        if raw_label is None:
            return None
        label = raw_label.strip()
        for canonical in CANONICAL_BURN_LABELS:
            if canonical.lower() == label.lower():
                return canonical

        low = label.lower()
        for cues, canonical in SEVERITY_TEXT_CUES:
            if any(cue in low for cue in cues):
                return canonical
        return None

    def parse_labels(self, text: str) -> List[str]:
        """One label per line; surrounding whitespace and blank lines are dropped."""
        labels = [line.strip() for line in text.splitlines()]
        labels = [label for label in labels if label]
        if not labels:
            raise ConfigurationError("Label list is empty")
        return labels

    def load_labels(self, path: str) -> List[str]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Cannot read label file {path}: {e}") from e
        labels = self.parse_labels(text)
        logger.info(f"Labels loaded ({len(labels)}): {labels}")
        return labels


label_canonicalizer = LabelCanonicalizer()
