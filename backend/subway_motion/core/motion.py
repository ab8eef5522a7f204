"""Time-sampled vehicle positions consumed by the renderer."""

import bisect
import datetime
from dataclasses import dataclass

# (lon, lat) in degrees
Position = tuple[float, float]


@dataclass(frozen=True)
class MotionSample:
    time: datetime.datetime
    position: Position


class MotionProperty:
    """Ordered samples with linear interpolation and a hold-last-sample policy.

    Times before the first sample are unresolved (``value_at`` returns None).
    Times after the last sample resolve to the last position.
    """

    def __init__(self, time: datetime.datetime, position: Position) -> None:
        self._samples: list[MotionSample] = [MotionSample(time, position)]

    @property
    def samples(self) -> list[MotionSample]:
        return list(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def start(self) -> datetime.datetime:
        return self._samples[0].time

    @property
    def stop(self) -> datetime.datetime:
        return self._samples[-1].time

    def add_sample(self, time: datetime.datetime, position: Position) -> None:
        """Insert a sample in time order; a sample at an existing time replaces it."""
        times = [s.time for s in self._samples]
        idx = bisect.bisect_left(times, time)
        sample = MotionSample(time, position)
        if idx < len(times) and times[idx] == time:
            self._samples[idx] = sample
        else:
            self._samples.insert(idx, sample)

    def value_at(self, time: datetime.datetime) -> Position | None:
        first = self._samples[0]
        if time < first.time:
            return None
        last = self._samples[-1]
        if time >= last.time:
            return last.position

        times = [s.time for s in self._samples]
        idx = bisect.bisect_right(times, time)
        a = self._samples[idx - 1]
        b = self._samples[idx]
        span = (b.time - a.time).total_seconds()
        if span <= 0:
            return b.position
        t = (time - a.time).total_seconds() / span
        return (
            a.position[0] + (b.position[0] - a.position[0]) * t,
            a.position[1] + (b.position[1] - a.position[1]) * t,
        )

    def to_list(self) -> list[dict]:
        return [
            {"time": s.time.isoformat(), "lon": s.position[0], "lat": s.position[1]}
            for s in self._samples
        ]
