"""Location acquisition with a bounded wait and a short-lived cache."""
import concurrent.futures
import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Protocol


@dataclass(frozen=True)
class LocationFix:
    latitude: float
    longitude: float
    timestamp: float = field(default_factory=time.time)  # epoch seconds

    def as_dict(self):
        return {'latitude': self.latitude, 'longitude': self.longitude}


class LocationProvider(Protocol):
    def get_position(self) -> Optional[LocationFix]:
        ...


class StaticLocationProvider:
    """Reports a fixed position, e.g. coordinates given on the command line."""

    def __init__(self, latitude, longitude):
        self.latitude = latitude
        self.longitude = longitude

    def get_position(self):
        return LocationFix(self.latitude, self.longitude)


class LocationService:
    """Resolves the device position for a capture or a proximity sort.

    A fix younger than ``maximum_age`` seconds is reused; otherwise the provider
    is asked and given at most ``timeout`` seconds. Every failure mode
    (no provider, error, timeout) yields None rather than an exception.
    """

    def __init__(self, provider=None, timeout=15.0, maximum_age=10.0, clock=time.time):
        self.provider = provider
        self.timeout = timeout
        self.maximum_age = maximum_age
        self._clock = clock
        self._last_fix = None
        self.logger = logging.getLogger(self.__class__.__name__)

    def _cached_fix(self):
        if self._last_fix is None:
            return None
        if self._clock() - self._last_fix.timestamp <= self.maximum_age:
            return self._last_fix
        return None

    def get_current_location(self):
        """Return a LocationFix or None."""
        if self.provider is None:
            self.logger.warning("No location provider configured")
            return None

        cached = self._cached_fix()
        if cached is not None:
            self.logger.debug("Using cached location fix")
            return cached

        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix='location')
        try:
            future = executor.submit(self.provider.get_position)
            fix = future.result(timeout=self.timeout)
        except concurrent.futures.TimeoutError:
            self.logger.error(f"Timed out after {self.timeout}s waiting for a location fix")
            return None
        except Exception as e:
            self.logger.error(f"Error getting location: {e}")
            return None
        finally:
            # A provider stuck past the timeout is abandoned, not awaited
            executor.shutdown(wait=False)

        if fix is None:
            self.logger.warning("Location provider returned no fix")
            return None

        self._last_fix = fix
        self.logger.info(f"Location fix: {fix.latitude:.6f}, {fix.longitude:.6f}")
        return fix
