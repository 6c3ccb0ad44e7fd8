from __future__ import annotations

import enum
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional

from .config import DEFAULT_CONFIG, Config

logger = logging.getLogger(__name__)

StartFn = Callable[[], Any]


class AnimationState(enum.Enum):
    IDLE = "idle"
    QUEUED = "queued"
    ACTIVE = "active"
    DONE = "done"
    CANCELLED = "cancelled"


def get_target_fps(active_count: int, config: Config = DEFAULT_CONFIG) -> int:
    """Frame-rate budget for the render loop; drops once more than the threshold animate."""
    if active_count > config.reduced_fps_threshold:
        return config.reduced_fps
    return config.normal_fps


class AnimationQueue:
    """
    Caps how many storm animations run at once; the rest wait FIFO.

    Idle -> Queued -> Active -> Done, with Cancelled reachable from Queued or
    Active. Start callbacks run under the queue's re-entrant lock, so a
    callback may call back into the queue.
    """

    def __init__(self, max_simultaneous: int = DEFAULT_CONFIG.max_simultaneous_animations) -> None:
        if max_simultaneous < 1:
            raise ValueError(f"max_simultaneous must be >= 1, got {max_simultaneous}")
        self.max_simultaneous = int(max_simultaneous)
        self._lock = threading.RLock()
        self._active: "OrderedDict[Hashable, None]" = OrderedDict()
        self._queued: "OrderedDict[Hashable, StartFn]" = OrderedDict()
        self._finished: Dict[Hashable, AnimationState] = {}

    # Public API --------------------------------------------------------------
    def request_animation(self, anim_id: Hashable, start_fn: StartFn) -> bool:
        """True when ``anim_id`` is (or already was) granted a slot, False when it waits."""
        with self._lock:
            if anim_id in self._active:
                return True
            if anim_id in self._queued:
                return False
            self._finished.pop(anim_id, None)
            if len(self._active) < self.max_simultaneous:
                self._start(anim_id, start_fn)
                return True
            self._queued[anim_id] = start_fn
            logger.debug(f"[Scheduler] {anim_id} queued ({len(self._queued)} waiting)")
            return False

    def complete_animation(self, anim_id: Hashable) -> None:
        """Retire ``anim_id`` and promote the oldest waiting animation into the free slot."""
        with self._lock:
            if anim_id in self._active:
                del self._active[anim_id]
                self._finished[anim_id] = AnimationState.DONE
            self._promote()

    def cancel_animation(self, anim_id: Hashable) -> None:
        """Drop ``anim_id`` whether running or waiting. Nothing is promoted here."""
        with self._lock:
            if anim_id in self._active:
                del self._active[anim_id]
            elif anim_id in self._queued:
                del self._queued[anim_id]
            else:
                return
            self._finished[anim_id] = AnimationState.CANCELLED

    def state_of(self, anim_id: Hashable) -> AnimationState:
        with self._lock:
            if anim_id in self._active:
                return AnimationState.ACTIVE
            if anim_id in self._queued:
                return AnimationState.QUEUED
            return self._finished.get(anim_id, AnimationState.IDLE)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._active)

    @property
    def queued_count(self) -> int:
        with self._lock:
            return len(self._queued)

    def active_ids(self) -> List[Hashable]:
        with self._lock:
            return list(self._active)

    def queued_ids(self) -> List[Hashable]:
        with self._lock:
            return list(self._queued)

    def clear(self) -> None:
        with self._lock:
            self._active.clear()
            self._queued.clear()
            self._finished.clear()

    # Internals ---------------------------------------------------------------
    def _start(self, anim_id: Hashable, start_fn: StartFn) -> None:
        # marked active first so a re-entrant request sees the slot as taken
        self._active[anim_id] = None
        try:
            start_fn()
        except Exception:
            self._active.pop(anim_id, None)
            logger.error(f"[Scheduler] start of {anim_id} failed; slot released")
            raise

    def _promote(self) -> None:
        error = None
        while self._queued and len(self._active) < self.max_simultaneous:
            anim_id, start_fn = self._queued.popitem(last=False)
            logger.debug(f"[Scheduler] promoting {anim_id}")
            try:
                self._start(anim_id, start_fn)
            except Exception as exc:
                error = error or exc
        if error is not None:
            raise error


@dataclass(frozen=True)
class _Listener:
    target: Any
    event_type: str
    listener: Callable


class AnimationFrameManager:
    """
    Per-id registry of the outstanding frame handle and attached listeners.

    ``cancel_frame`` is the host's frame-cancel hook; listener targets expose
    ``add_listener(event_type, fn)`` / ``remove_listener(event_type, fn)``.
    """

    def __init__(self, cancel_frame: Optional[Callable[[Any], Any]] = None) -> None:
        self._cancel = cancel_frame or (lambda handle: None)
        self._lock = threading.RLock()
        self._frames: Dict[Hashable, Any] = {}
        self._listeners: Dict[Hashable, List[_Listener]] = {}

    def register_frame(self, anim_id: Hashable, handle: Any) -> None:
        with self._lock:
            prev = self._frames.get(anim_id)
            if prev is not None:
                self._cancel(prev)
            self._frames[anim_id] = handle

    def cancel_frame(self, anim_id: Hashable) -> None:
        with self._lock:
            handle = self._frames.pop(anim_id, None)
            if handle is not None:
                self._cancel(handle)

    def register_event_listener(self, anim_id: Hashable, target: Any,
                                event_type: str, listener: Callable) -> None:
        with self._lock:
            self._listeners.setdefault(anim_id, []).append(_Listener(target, event_type, listener))
            target.add_listener(event_type, listener)

    def remove_event_listeners(self, anim_id: Hashable) -> None:
        with self._lock:
            for reg in self._listeners.pop(anim_id, []):
                reg.target.remove_listener(reg.event_type, reg.listener)

    def cleanup(self, anim_id: Hashable) -> None:
        with self._lock:
            self.cancel_frame(anim_id)
            self.remove_event_listeners(anim_id)

    def cleanup_all(self) -> None:
        with self._lock:
            for anim_id in list(self._frames) + list(self._listeners):
                self.cleanup(anim_id)

    @property
    def active_frame_count(self) -> int:
        with self._lock:
            return len(self._frames)

    @property
    def event_listener_count(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._listeners.values())


class AnimationScheduler:
    """One per visualization session: queue + frame registry + FPS policy."""

    def __init__(self, config: Config = DEFAULT_CONFIG,
                 cancel_frame: Optional[Callable[[Any], Any]] = None) -> None:
        self.config = config
        self.queue = AnimationQueue(config.max_simultaneous_animations)
        self.frames = AnimationFrameManager(cancel_frame)

    def request(self, anim_id: Hashable, start_fn: StartFn) -> bool:
        return self.queue.request_animation(anim_id, start_fn)

    def complete(self, anim_id: Hashable) -> None:
        self.frames.cleanup(anim_id)
        self.queue.complete_animation(anim_id)

    def cancel(self, anim_id: Hashable) -> None:
        self.frames.cleanup(anim_id)
        self.queue.cancel_animation(anim_id)

    @property
    def target_fps(self) -> int:
        return get_target_fps(self.queue.active_count, self.config)

    def teardown(self) -> None:
        logger.info(f"[Scheduler] teardown: {self.queue.active_count} active, "
                    f"{self.queue.queued_count} queued, {self.frames.active_frame_count} frames")
        self.frames.cleanup_all()
        self.queue.clear()
