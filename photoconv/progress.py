"""Multi-lane progress display, one tqdm bar per worker."""

from __future__ import annotations

import logging
import threading
from typing import IO, Optional, Sequence

from tqdm import tqdm

from .models import ProgressState
from .utils import DONE_MESSAGE

log = logging.getLogger(__name__)

BAR_FORMAT = "[{elapsed}] {bar:40} {n_fmt:>7}/{total_fmt:7} {desc}"


def lane_text(state: ProgressState) -> str:
    """Text shown after a lane's counter."""
    if state.finished:
        if state.cancelled:
            if state.failed:
                return f"Cancelled ({state.cancelled} skipped, {state.failed} failed)"
            return f"Cancelled ({state.cancelled} skipped)"
        if state.failed:
            return f"{DONE_MESSAGE} ({state.failed} failed)"
        return DONE_MESSAGE
    if state.failed:
        return f"[{state.failed} failed] {state.last_message}"
    return state.last_message


class ProgressAggregator:
    """Render worker ``ProgressState`` objects on a background thread.

    Workers only touch their own state object; this class polls the states
    and pushes them to the bars, so a slow terminal never stalls a worker.
    """

    def __init__(
        self,
        states: Sequence[ProgressState],
        *,
        enabled: bool = True,
        refresh_interval: float = 0.1,
        file: Optional[IO[str]] = None,
    ) -> None:
        self.states = list(states)
        self.enabled = enabled
        self.refresh_interval = refresh_interval
        self._bars = [
            tqdm(
                total=state.total,
                position=index,
                bar_format=BAR_FORMAT,
                leave=True,
                dynamic_ncols=True,
                disable=not enabled,
                file=file,
            )
            for index, state in enumerate(self.states)
        ]
        self._rendered_done = [False] * len(self.states)
        self._stop_evt = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="progress-renderer", daemon=True
        )

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> "ProgressAggregator":
        if self.enabled and self.states:
            self._thread.start()
        return self

    def close(self) -> None:
        """Stop the renderer, draw the final state and release the bars."""
        self._stop_evt.set()
        if self._thread.is_alive():
            self._thread.join()
        self.render()
        for bar in reversed(self._bars):
            bar.close()

    def __enter__(self) -> "ProgressAggregator":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- rendering ---------------------------------------------------------

    def _run(self) -> None:
        while not self._stop_evt.wait(self.refresh_interval):
            self.render()

    def render(self) -> None:
        """Push one snapshot of every state to its bar."""
        for index, (state, bar) in enumerate(zip(self.states, self._bars)):
            if self._rendered_done[index]:
                continue
            finished = state.finished
            bar.n = min(state.completed, state.total)
            bar.set_description_str(lane_text(state), refresh=False)
            bar.refresh()
            if finished:
                self._rendered_done[index] = True
                log.debug(
                    "Worker %s lane complete: %s/%s (%s failed)",
                    state.worker,
                    state.completed,
                    state.total,
                    state.failed,
                )

    @property
    def completed_lanes(self) -> int:
        return sum(self._rendered_done)
