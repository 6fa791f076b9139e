"""
Audience Mood Tracker
Usage: python main.py [--camera 0] [--alpha 0.3] [--epsilon 1.0] [--interval 30]
"""

import argparse
import os

from dotenv import load_dotenv

# Load .env before reading any tunables from the environment
load_dotenv()

from mood_tracker import config
from mood_tracker.errors import ConfigError
from mood_tracker.runner import MoodRunner, WebcamSource
from mood_tracker.scoring import engagement_band
from mood_tracker.session import TrackingSession


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Real-time audience mood tracking")
    parser.add_argument("--camera", type=int, default=config.CAMERA_INDEX, help="Camera index")
    parser.add_argument(
        "--alpha", type=float, default=None,
        help=f"EMA smoothing factor in (0, 1) (env {config.ENV_EMA_ALPHA})",
    )
    parser.add_argument(
        "--epsilon", type=float, default=None,
        help=f"Privacy budget for outbound noise, smaller = more noise (env {config.ENV_PRIVACY_EPSILON})",
    )
    parser.add_argument(
        "--interval", type=float, default=None,
        help=f"Timeline snapshot interval in seconds (env {config.ENV_SNAPSHOT_INTERVAL})",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed noise (testing only)")
    return parser


def build_session(parser: argparse.ArgumentParser, argv=None) -> tuple[argparse.Namespace, TrackingSession]:
    """Parse arguments and build the session; bad flags or env values exit via the parser."""
    args = parser.parse_args(argv)
    try:
        if args.alpha is None:
            args.alpha = _env_float(config.ENV_EMA_ALPHA, config.EMA_SMOOTHING_FACTOR)
        if args.epsilon is None:
            args.epsilon = _env_float(config.ENV_PRIVACY_EPSILON, config.PRIVACY_EPSILON)
        if args.interval is None:
            args.interval = _env_float(config.ENV_SNAPSHOT_INTERVAL, config.SNAPSHOT_INTERVAL_SECONDS)
        session = TrackingSession(
            alpha=args.alpha,
            snapshot_interval=args.interval,
            epsilon=args.epsilon,
            seed=args.seed,
        )
    except ConfigError as e:
        parser.error(str(e))
    return args, session


def main(argv=None) -> None:
    args, session = build_session(_build_parser(), argv)

    runner = MoodRunner(session, source=WebcamSource(camera_index=args.camera))
    summary = runner.run()
    if summary is None:
        return

    print(f"[RUNNER] Engagement: {summary.engagement_score} ({engagement_band(summary.engagement_score)})")
    print(summary.to_json())


if __name__ == "__main__":
    main()
