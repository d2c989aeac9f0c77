"""Start/stop coordination for one augmentation feature.

start() schedules every discovery routine as a task on the running asyncio
loop and returns at once. stop() cancels the current token and reverts the
patch scope whether or not discovery finished. A routine that resumes after
stop() sees a cancelled token and must not install anything.

Routines have the signature ``async def routine(scope, token) -> None``.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable, List, Sequence

from augment import metrics
from augment.errors import AugmentError, CancellationRace, map_exception
from augment.events import (
    DiscoveryDiscarded,
    FeatureSkipped,
    FeatureStarted,
    FeatureStopped,
    emit,
)
from augment.patcher import PatchScope, create_scope

logger = logging.getLogger(__name__)


class CancellationToken:
    """Flag that flips to cancelled exactly once.

    Callbacks registered before cancellation fire once, in order; a callback
    added after cancellation fires immediately.
    """

    __slots__ = ("_cancelled", "_callbacks")

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> bool:
        if self._cancelled:
            return False
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for cb in callbacks:
            try:
                cb()
            except Exception:  # noqa: BLE001
                logger.exception("cancellation callback failed")
        return True

    def add_callback(self, cb: Callable[[], None]) -> Callable[[], None]:
        """Register cb; returns a callable that unregisters it."""
        if self._cancelled:
            cb()
            return lambda: None
        self._callbacks.append(cb)

        def _release() -> None:
            try:
                self._callbacks.remove(cb)
            except ValueError:
                pass

        return _release

    def raise_if_cancelled(self, what: str = "discovery") -> None:
        if self._cancelled:
            raise CancellationRace(f"{what} resumed after stop()")


class LifecycleState(str, enum.Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"


Routine = Callable[[PatchScope, CancellationToken], Awaitable[None]]


class LifecycleController:
    def __init__(self, name: str, routines: Sequence[Routine]):
        self.name = name
        self._routines = list(routines)
        self._state = LifecycleState.STOPPED
        self._token = CancellationToken()
        self._token.cancel()
        self._scope: PatchScope | None = None
        self._tasks: List[asyncio.Task[None]] = []

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def scope(self) -> PatchScope | None:
        return self._scope

    def start(self) -> bool:
        """Launch discovery; False when nothing was started."""
        if self._state is not LifecycleState.STOPPED:
            logger.warning("%s: start() ignored in state %s", self.name, self._state.value)
            return False
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("%s: start() needs a running event loop; feature stays off", self.name)
            metrics.inc_error("feature-internal")
            return False
        # Fresh token per run: routines of an earlier run keep their
        # (cancelled) token and can never install into this scope.
        token = CancellationToken()
        scope = create_scope(self.name)
        self._token = token
        self._scope = scope
        self._state = LifecycleState.STARTING
        self._tasks = [
            loop.create_task(
                self._run(routine, scope, token),
                name=f"{self.name}:{_routine_name(routine)}",
            )
            for routine in self._routines
        ]
        emit(FeatureStarted(feature=self.name, routines=len(self._tasks)))
        logger.info("%s: started %d discovery routine(s)", self.name, len(self._tasks))
        if not self._tasks:
            self._state = LifecycleState.RUNNING
            return True
        pending = {"n": len(self._tasks)}

        def _settled(_task: asyncio.Task[None]) -> None:
            pending["n"] -= 1
            if pending["n"] == 0 and self._token is token and not token.cancelled:
                self._state = LifecycleState.RUNNING
                logger.info("%s: running", self.name)

        for task in self._tasks:
            task.add_done_callback(_settled)
        return True

    async def _run(
        self, routine: Routine, scope: PatchScope, token: CancellationToken
    ) -> None:
        rname = _routine_name(routine)
        try:
            await routine(scope, token)
        except CancellationRace:
            logger.debug("%s: %s discarded after stop()", self.name, rname)
            emit(DiscoveryDiscarded(feature=self.name, routine=rname))
        except AugmentError as e:
            logger.warning("%s: %s skipped: %s", self.name, rname, e)
            emit(
                FeatureSkipped(
                    feature=self.name,
                    routine=rname,
                    error_type=map_exception(e),
                    message=str(e),
                )
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.exception("%s: %s failed", self.name, rname)
            emit(
                FeatureSkipped(
                    feature=self.name,
                    routine=rname,
                    error_type=map_exception(e),
                    message=str(e),
                )
            )

    def stop(self) -> None:
        state_before = self._state
        self._token.cancel()
        reverted = 0
        if self._scope is not None:
            reverted = self._scope.unpatch_all()
        self._state = LifecycleState.STOPPED
        if state_before is not LifecycleState.STOPPED:
            emit(
                FeatureStopped(
                    feature=self.name,
                    reverted=reverted,
                    state_before=state_before.value,
                )
            )
            logger.info("%s: stopped, %d patch(es) reverted", self.name, reverted)

    async def wait_settled(self) -> None:
        """Wait for every routine of the current run to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


def _routine_name(routine: Routine) -> str:
    return getattr(routine, "__name__", None) or type(routine).__name__


__all__ = [
    "CancellationToken",
    "LifecycleController",
    "LifecycleState",
    "Routine",
]
