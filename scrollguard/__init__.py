"""
ScrollGuard - Behavioral Pattern Detection Engine

Tells compulsive ("doom") scrolling apart from intentional use and
personalises its sensitivity over time.

Packages:
    detection/: Real-time scoring of the live session
        - content_classifier.py: Is the visible screen blockable content?
        - scroll_scorer.py: Rolling-window confidence score per session
        - session_aggregator.py: Session boundaries and SessionRecords
        - pipeline.py: Single-writer host pipeline and interventions

    learning/: Periodic personalisation from finished sessions
        - pattern_learner.py: Personalised thresholds from history
        - risk_predictor.py: Contextual risk and blocking strategy
        - thresholds.py: Atomically published thresholds
        - session_stats.py: Aggregate session statistics

Configuration: args/detection.yaml, args/learning.yaml
"""

from pathlib import Path

__version__ = "0.1.0"

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
ARGS_DIR = PROJECT_ROOT / "args"

__all__ = ["ARGS_DIR", "PROJECT_ROOT", "__version__"]
