"""Learning - Personalisation from finished sessions

Core Principle:
    The engine should get better at recognising one person's doom
    scrolling without asking them anything. Every finished session is a
    data point; thresholds follow the data.

Components:
    pattern_learner.py: Personalised thresholds
        - Velocity midpoint between doom and productive sessions
        - Duration threshold from typical doom session length
        - Confidence tier from how heavy doom sessions are
        - Fixed defaults until there are 10 sessions

    risk_predictor.py: Contextual risk and blocking strategy
        - Time of day, day of week, battery, recent doom sessions
        - Monotone step function from risk to strategy

    thresholds.py: Atomically published thresholds
        - Learner writes a new value, scorer reads the current one

    session_stats.py: Aggregate statistics
        - Lookback filtering, blocked scrolls, time saved

Safety Rules:
    1. Learning passes are stateless and deterministic
    2. Thresholds are replaced wholesale, never mutated field by field
    3. Insufficient data means defaults, not guesses
"""
