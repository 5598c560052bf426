"""Prompt composer: the toolkit-independent half of the submission surface.

Holds the draft text, the create/edit mode and the aspect ratio, and decides
when a submission may go out. The GUI binds widgets to it and supplies the
``dispatch`` callable that actually runs the submission.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from api import ASPECT_RATIOS, GenerationConfig


class Mode(Enum):
    CREATE = "create"
    EDIT = "edit"


@dataclass(frozen=True)
class Submission:
    mode: Mode
    text: str
    config: Optional[GenerationConfig] = None


class PromptComposer:
    def __init__(self, dispatch: Callable[[Submission], None], aspect_ratio: str = "1:1"):
        if aspect_ratio not in ASPECT_RATIOS:
            raise ValueError(f"Unsupported aspect ratio: {aspect_ratio!r}")
        self._dispatch = dispatch
        self.draft = ""
        self.mode = Mode.CREATE
        self.aspect_ratio = aspect_ratio
        self.has_image = False
        self.busy = False

    def sync(self, snapshot):
        """Follow the session: edit mode whenever a sketch exists, create otherwise."""
        self.busy = snapshot.is_busy
        if snapshot.has_image != self.has_image:
            self.has_image = snapshot.has_image
            if self.has_image:
                self.mode = Mode.EDIT
                self.draft = ""
            else:
                self.mode = Mode.CREATE

    def select_mode(self, mode: Mode):
        if mode is Mode.EDIT and not self.has_image:
            return
        if mode is Mode.CREATE and self.mode is not Mode.CREATE:
            self.draft = ""
        self.mode = mode

    def set_aspect_ratio(self, ratio: str):
        if ratio not in ASPECT_RATIOS:
            raise ValueError(f"Unsupported aspect ratio: {ratio!r}")
        self.aspect_ratio = ratio

    @property
    def can_submit(self) -> bool:
        return bool(self.draft.strip()) and not self.busy

    @property
    def show_settings(self) -> bool:
        return self.mode is Mode.CREATE

    @property
    def placeholder_text(self) -> str:
        if self.mode is Mode.CREATE:
            return "Describe your sketch (e.g., 'A lonely cabin in the woods')..."
        return "How should I change it? (e.g., 'Add smoke coming from the chimney')"

    def submit(self) -> bool:
        """Dispatch the draft. Ignored while busy or when the draft is blank."""
        if not self.can_submit:
            return False
        if self.mode is Mode.CREATE:
            submission = Submission(Mode.CREATE, self.draft, GenerationConfig(self.aspect_ratio))
        else:
            submission = Submission(Mode.EDIT, self.draft)
        # Block re-entry until the next sync reports the outcome
        self.busy = True
        self._dispatch(submission)
        return True

    def handle_return(self, shift_pressed: bool) -> bool:
        """Return submits; Shift+Return is left to the editor as a newline."""
        if shift_pressed:
            return False
        self.submit()
        return True


def run_submission(controller, submission: Submission) -> bool:
    if submission.mode is Mode.CREATE:
        return controller.submit_generation(submission.text, submission.config)
    return controller.submit_edit(submission.text)
