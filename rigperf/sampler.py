# rigperf/sampler.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

from .evaluator import PoseEvaluator, Skeleton
from .types import Animation, RigData

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 30.0
TRACK = 0

Observer = Callable[[float, Skeleton], None]


class PoseResolutionError(RuntimeError):
    def __init__(self, animation: str, time: float, cause: BaseException) -> None:
        super().__init__(f"Pose resolution failed for animation {animation!r} at t={time:.4f}s ({cause!r})")
        self.animation = animation
        self.time = time


@dataclass(frozen=True)
class PlaybackState:
    animation_name: Optional[str]
    track_time: float
    loop: bool


def sample_count(duration: float, rate: float) -> int:
    if rate <= 0.0:
        raise ValueError(f"sample rate must be positive, got {rate!r}")
    return max(1, int(math.ceil(max(duration, 0.0) * rate)))


def sample_times(duration: float, rate: float = DEFAULT_SAMPLE_RATE) -> list[float]:
    """
    N+1 evenly spaced instants over [0, duration]; both endpoints included,
    so a zero-length animation still yields [0.0, 0.0].
    """
    n = sample_count(duration, rate)
    return [(i / n) * duration for i in range(n + 1)]


def capture_playback(evaluator: PoseEvaluator) -> PlaybackState:
    entry = evaluator.get_current_track(TRACK)
    if entry is None:
        return PlaybackState(animation_name=None, track_time=0.0, loop=False)
    return PlaybackState(animation_name=entry.animation_name, track_time=entry.time, loop=entry.loop)


def restore_playback(evaluator: PoseEvaluator, state: PlaybackState) -> None:
    evaluator.clear_track(TRACK)
    if state.animation_name is not None:
        evaluator.set_animation(TRACK, state.animation_name, state.loop)
        evaluator.set_track_time(TRACK, state.track_time)
    # with nothing to reinstate this resolves the setup pose
    evaluator.apply_and_resolve()


def sample_animation(
    evaluator: PoseEvaluator,
    animation: Animation,
    observer: Observer,
    sample_rate: float = DEFAULT_SAMPLE_RATE,
) -> int:
    """
    Step `animation` across sample_times(duration, sample_rate), calling
    observer(time, skeleton) with the live pose at each instant.

    The evaluator's track 0 (name, time, loop) is restored on every exit path.
    Evaluator failures surface as PoseResolutionError; observer errors
    propagate unchanged. A failed restore is logged when another error is
    already on its way out, and raised as PoseResolutionError otherwise.
    Returns the number of poses observed.
    """
    times = sample_times(animation.duration, sample_rate)
    original = capture_playback(evaluator)
    logger.debug("Sampling %r - duration: %.3fs, samples: %d", animation.name, animation.duration, len(times))

    try:
        try:
            evaluator.clear_track(TRACK)
            evaluator.set_animation(TRACK, animation.name, False)
        except Exception as e:
            raise PoseResolutionError(animation.name, 0.0, e) from e
        for t in times:
            try:
                evaluator.set_track_time(TRACK, t)
                evaluator.apply_and_resolve()
            except Exception as e:
                raise PoseResolutionError(animation.name, t, e) from e
            observer(t, evaluator.skeleton)
    except BaseException:
        try:
            restore_playback(evaluator, original)
        except Exception:
            logger.exception("Restoring playback after sampling %r failed", animation.name)
        raise

    try:
        restore_playback(evaluator, original)
    except Exception as e:
        raise PoseResolutionError(animation.name, times[-1], e) from e

    return len(times)


def sample_all_animations(
    evaluator: PoseEvaluator,
    rig: RigData,
    observer: Callable[[Animation, float, Skeleton], None],
    sample_rate: float = DEFAULT_SAMPLE_RATE,
) -> int:
    total = 0
    for anim in rig.animations:
        total += sample_animation(evaluator, anim, lambda t, sk, a=anim: observer(a, t, sk), sample_rate)
    return total
