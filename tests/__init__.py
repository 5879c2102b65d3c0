"""ScrollGuard Test Suite

This package contains all tests for the ScrollGuard detection engine.

Test organization:
- unit/: Unit tests for individual modules
  - detection/: Classifier, scorer, session aggregator, pipeline
  - learning/: Pattern learner, risk predictor, thresholds, statistics
  - test_config_models.py, test_logging_config.py: Ambient configuration

Running tests:
    # All tests
    pytest

    # Specific package
    pytest tests/unit/detection/

    # Single scenario
    pytest tests/unit/detection/test_scroll_scorer.py -k rapid_burst
"""
