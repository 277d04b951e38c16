# Burn severity vocabulary.
# The canonical labels are ordinal: the index in CANONICAL_BURN_LABELS is the
# class index a 3-class checkpoint is trained to emit.

FIRST_DEGREE = "First-degree burn"
SECOND_DEGREE = "Second-degree burn"
THIRD_DEGREE = "Third-degree burn"

CANONICAL_BURN_LABELS = [FIRST_DEGREE, SECOND_DEGREE, THIRD_DEGREE]

# User-facing result when any gate rejects the image.
BURN_NOT_DETECTED = "Burn not detected"

# Label-file entries that explicitly mean "no burn in this image".
# Matched against the trimmed, lower-cased raw label.
NON_BURN_SYNONYMS = {
    "other",
    "non-burn",
    "nonburn",
    "background",
    "bg",
    "not burn",
    "not_burn",
    "no burn",
    "negative",
    "none",
}

# Substring cues for label files that do not use the canonical names.
# Checked in order; the first hit wins.
SEVERITY_TEXT_CUES = [
    (("1st", "first"), FIRST_DEGREE),
    (("2nd", "second"), SECOND_DEGREE),
    (("3rd", "third"), THIRD_DEGREE),
]

# Normalization schemes probed by the multi-view aggregator, in order.
# (name, per-channel mean, per-channel std)
NORMALIZATION_SCHEMES = [
    # torchvision / ImageNet statistics
    ("imagenet", (0.485, 0.456, 0.406), (0.229, 0.224, 0.225)),
    # raw [0, 1] pixels
    ("identity", (0.0, 0.0, 0.0), (1.0, 1.0, 1.0)),
    # [-1, 1] pixels
    ("half", (0.5, 0.5, 0.5), (0.5, 0.5, 0.5)),
]
