from __future__ import annotations


class TurnTimer:
    """Countdown for the action phase, fed frame deltas by the driver.

    The timer carries the match's `turn_token` from when it was started; when
    it expires the token is handed back so the resulting `TimeoutAction` can be
    matched against the live phase. Expiry fires at most once per start.
    """

    def __init__(self, duration: float) -> None:
        self.duration = float(duration)
        self.remaining = 0.0
        self.token: int | None = None

    @property
    def running(self) -> bool:
        return self.token is not None

    def start(self, token: int) -> None:
        self.token = token
        self.remaining = self.duration

    def cancel(self) -> None:
        self.token = None
        self.remaining = 0.0

    def advance(self, dt: float) -> int | None:
        if self.token is None:
            return None
        self.remaining = max(0.0, self.remaining - dt)
        if self.remaining > 0.0:
            return None
        token = self.token
        self.token = None
        return token

    @property
    def seconds_left(self) -> int:
        return int(self.remaining + 0.999)
