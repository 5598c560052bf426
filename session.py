"""Session state and the controller that owns every transition of it.

One controller drives one SessionState. The controller enforces single-flight
itself: while a generation or edit is outstanding any further submission is
rejected with SubmissionInFlightError, whatever the GUI does.
"""
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from api import GenerationConfig
from artifact import ImageArtifact
from errors import EmptyPromptError, SubmissionInFlightError

logger = logging.getLogger(__name__)

GENERATE_FALLBACK_MESSAGE = "Failed to generate sketch. Please try again."
EDIT_FALLBACK_MESSAGE = "Failed to edit sketch. Try a different instruction."
INTERRUPTED_MESSAGE = "Sketch request was interrupted."


class Status(Enum):
    IDLE = "idle"
    GENERATING = "generating"
    EDITING = "editing"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_busy(self) -> bool:
        return self in (Status.GENERATING, Status.EDITING)


@dataclass
class SessionState:
    current: Optional[ImageArtifact] = None
    status: Status = Status.IDLE
    error: Optional[str] = None
    # most recent last
    history: List[ImageArtifact] = field(default_factory=list)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the session handed to the display surface."""
    current: Optional[ImageArtifact]
    status: Status
    error: Optional[str]
    history_depth: int

    @property
    def has_image(self) -> bool:
        return self.current is not None

    @property
    def is_busy(self) -> bool:
        return self.status.is_busy

    @property
    def can_undo(self) -> bool:
        return self.history_depth > 0 and not self.is_busy


Listener = Callable[[SessionSnapshot], None]


def _error_message(exc: BaseException, fallback: str) -> str:
    message = str(exc).strip()
    return message or fallback


class SessionController:
    def __init__(self, gateway, state: Optional[SessionState] = None):
        self.gateway = gateway
        self.state = state if state is not None else SessionState()
        self._lock = threading.Lock()
        self._in_flight = False
        self._listeners: List[Listener] = []

    # --- observation ---

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with a fresh snapshot after every transition."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _snapshot_locked(self) -> SessionSnapshot:
        s = self.state
        return SessionSnapshot(current=s.current, status=s.status, error=s.error,
                               history_depth=len(s.history))

    def _notify(self, snapshot: SessionSnapshot):
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session listener %r failed", listener)

    # --- operations ---

    def submit_generation(self, prompt: str, config: Optional[GenerationConfig] = None) -> bool:
        """Generate a fresh sketch. Returns True on success, False on failure."""
        if not prompt or not prompt.strip():
            raise EmptyPromptError("Prompt must not be empty")
        config = config or GenerationConfig()

        with self._lock:
            self._begin_locked(Status.GENERATING)
            started = self._snapshot_locked()
        self._notify(started)

        try:
            artifact = self.gateway.generate(prompt, config)
        except Exception as e:
            logger.error("Sketch generation failed: %s", e, exc_info=True)
            self._finish_with_error(_error_message(e, GENERATE_FALLBACK_MESSAGE))
            return False
        except BaseException:
            self._finish_with_error(INTERRUPTED_MESSAGE)
            raise

        with self._lock:
            if self.state.current is not None:
                self.state.history.append(self.state.current)
            self.state.current = artifact
            self.state.status = Status.SUCCESS
            self._in_flight = False
            done = self._snapshot_locked()
        self._notify(done)
        return True

    def submit_edit(self, instruction: str) -> bool:
        """Refine the current sketch. Returns True on success, False otherwise.

        The pre-edit image is pushed to history before the request goes out,
        so a failed edit still leaves it on the undo stack.
        """
        if not instruction or not instruction.strip():
            raise EmptyPromptError("Edit instruction must not be empty")

        with self._lock:
            if self._in_flight:
                raise SubmissionInFlightError("A sketch request is already in progress")
            source = self.state.current
            if source is None:
                logger.info("Edit requested without a current sketch; ignoring")
                return False
            self._begin_locked(Status.EDITING)
            self.state.history.append(source)
            started = self._snapshot_locked()
        self._notify(started)

        try:
            artifact = self.gateway.edit(source, instruction)
        except Exception as e:
            logger.error("Sketch edit failed: %s", e, exc_info=True)
            self._finish_with_error(_error_message(e, EDIT_FALLBACK_MESSAGE))
            return False
        except BaseException:
            self._finish_with_error(INTERRUPTED_MESSAGE)
            raise

        with self._lock:
            self.state.current = artifact
            self.state.status = Status.SUCCESS
            self._in_flight = False
            done = self._snapshot_locked()
        self._notify(done)
        return True

    def undo(self) -> bool:
        with self._lock:
            if self._in_flight or not self.state.history:
                return False
            self.state.current = self.state.history.pop()
            snap = self._snapshot_locked()
        self._notify(snap)
        return True

    def dismiss_error(self):
        with self._lock:
            if self._in_flight:
                return
            self.state.status = Status.IDLE
            snap = self._snapshot_locked()
        self._notify(snap)

    # --- helpers ---

    def _begin_locked(self, status: Status):
        if self._in_flight:
            raise SubmissionInFlightError("A sketch request is already in progress")
        self._in_flight = True
        self.state.status = status
        self.state.error = None

    def _finish_with_error(self, message: str):
        with self._lock:
            self.state.status = Status.ERROR
            self.state.error = message
            self._in_flight = False
            snap = self._snapshot_locked()
        self._notify(snap)
