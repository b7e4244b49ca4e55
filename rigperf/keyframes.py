from __future__ import annotations

from typing import Any, Sequence

from .types import Keyframe


def _clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


def lerp(a: float, b: float, t: float) -> float:
    t = _clamp(t, 0.0, 1.0)
    return a + (b - a) * t


def lerp_tuple(a: Sequence[float], b: Sequence[float], t: float) -> tuple[float, ...]:
    t = _clamp(t, 0.0, 1.0)
    return tuple(x + (y - x) * t for x, y in zip(a, b))


def find_bracketing_keys(frames: Sequence[Keyframe], t: float) -> tuple[int, int]:
    """
    Returns (i0, i1) indices into frames such that frames[i0].time <= t <= frames[i1].time.
    If t is outside range, returns nearest endpoint pair (0,0) or (n-1,n-1).
    Assumes frames sorted by time.
    """
    n = len(frames)
    if n == 0:
        return (0, 0)
    if t <= frames[0].time:
        return (0, 0)
    if t >= frames[-1].time:
        return (n - 1, n - 1)

    # binary search
    lo, hi = 0, n - 1
    while lo + 1 < hi:
        mid = (lo + hi) // 2
        if frames[mid].time <= t:
            lo = mid
        else:
            hi = mid
    return (lo, hi)


def sample_stepped(frames: Sequence[Keyframe], t: float, default: Any = None) -> Any:
    # hold the last key <= t; before the first key the setup value stays
    if not frames:
        return default
    if t < frames[0].time:
        return default
    i0, i1 = find_bracketing_keys(frames, t)
    if frames[i1].time <= t:
        return frames[i1].value
    return frames[i0].value


def sample_linear(frames: Sequence[Keyframe], t: float, default: Any = None) -> Any:
    """
    Linear interpolation between bracketing keys. Clamps outside range.
    Works for scalars and fixed-length tuples of floats.
    """
    if not frames:
        return default
    if len(frames) == 1:
        return frames[0].value

    i0, i1 = find_bracketing_keys(frames, t)
    if i0 == i1:
        return frames[i0].value

    k0, k1 = frames[i0], frames[i1]
    dt = k1.time - k0.time
    if dt <= 0.0:
        return k0.value
    alpha = (t - k0.time) / dt
    if isinstance(k0.value, tuple):
        return lerp_tuple(k0.value, k1.value, alpha)
    return lerp(float(k0.value), float(k1.value), alpha)
