"""
Configuration settings for the Burn Severity Scan application.
Contains model parameters, open-set rejection thresholds, and system constants.
"""
import os

from dotenv import load_dotenv

load_dotenv()


# --- Open-set rejection: confidence ---

# A top probability at or above this value is accepted without the margin rule.
ACCEPT_HARD = 0.82

# Rule-based acceptance: top probability, Top-1 vs Top-2 margin and
# distance from the uniform distribution must all clear these values.
MIN_CONFIDENCE = 0.55
MIN_MARGIN = 0.10
# top - (1 / n_classes) must be >= this (~0.67 top for 3 classes)
UNIFORM_GAP = 0.34

# Natural-log entropy ceiling. For 3 classes the maximum is ln(3) ~ 1.099;
# a 90/5/5 split sits around 0.394.
MAX_ENTROPY = 0.58


# --- Open-set rejection: color evidence ---

# Fraction of the analysis grid classified as skin (YCbCr box).
MIN_SKIN_FRACTION = 0.14

# Fraction of skin pixels that are also red.
MIN_RED_ON_SKIN = 0.12

# Largest 4-connected red-on-skin region, as a fraction of all pixels.
MIN_LARGEST_BLOB_FRAC = 0.04

# Forces skin_fraction to 1.0. Debug only.
DEBUG_BYPASS_SKIN_CHECK = os.getenv("DEBUG_BYPASS_SKIN_CHECK", "false").lower() in ("1", "true", "yes")


# --- Test-time augmentation ---

# Jensen-Shannon divergence (base e) allowed between original and mirrored views.
MAX_JSD = 0.06


# --- Image geometry ---

# The color gate always works on this grid, whatever the input resolution.
ANALYSIS_SIZE = (128, 128)

# The classifier input resolution.
# Changing this requires a compatible model checkpoint.
MODEL_IMAGE_SIZE = (224, 224)


# --- Model Configuration ---

# TorchScript checkpoint and its label file, one label per line.
BURN_MODEL_PATH = os.getenv("BURN_MODEL_PATH", "models/burn_cpu_v1.pt")
BURN_LABELS_PATH = os.getenv("BURN_LABELS_PATH", "models/labels.txt")

# Optional HuggingFace repo to fetch the checkpoint and labels from when
# they are missing locally.
BURN_MODEL_REPO = os.getenv("BURN_MODEL_REPO")
