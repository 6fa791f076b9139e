"""Configuration constants for the mood tracking pipeline."""

# Webcam capture (host runner only)
CAMERA_INDEX = 0
FRAME_WIDTH = 320             # low resolution keeps raw biometric data small
FRAME_HEIGHT = 240
CAPTURE_QUEUE_SIZE = 2        # small = drop stale frames, always process latest

# Expression model (DeepFace)
DETECTOR_BACKEND = "opencv"
ENFORCE_DETECTION = False     # don't crash when no face visible
ACTIONS = ("emotion",)        # only emotion, skip age/gender/race
MIN_DETECTION_CONFIDENCE = 0.7  # drop weak face detections before aggregation
DETECTION_INTERVAL_SECONDS = 0.5  # ~2 Hz detection pacing

# Temporal smoothing
EMA_SMOOTHING_FACTOR = 0.3    # lower = stronger smoothing

# Timeline
SNAPSHOT_INTERVAL_SECONDS = 30.0

# Privacy gate
PRIVACY_EPSILON = 1.0         # Laplace scale b = 1/epsilon
COUNT_COARSENING = 10         # outbound totals rounded to nearest N

# Engagement weights per label (0 = disengaged, 1 = fully engaged)
ENGAGEMENT_WEIGHTS = {
    "happy": 1.0,
    "surprised": 0.8,
    "neutral": 0.5,
    "bored": 0.15,
    "sad": 0.1,
    "angry": 0.0,
}

# Engagement bands, checked top-down: (min score, label)
ENGAGEMENT_BANDS = (
    (80, "Excellent"),
    (60, "Good"),
    (40, "Moderate"),
    (20, "Low"),
    (0, "Very Low"),
)

# Environment variable names read by main.py
ENV_EMA_ALPHA = "MOOD_EMA_ALPHA"
ENV_SNAPSHOT_INTERVAL = "MOOD_SNAPSHOT_INTERVAL"
ENV_PRIVACY_EPSILON = "MOOD_PRIVACY_EPSILON"
