#
# SketchGenius v0.1
#
# GUI for Gemini sketch generation and editing using PySide6
# (C) Copyright 2025 Mika Jussila
#

import logging
import os

from PySide6 import QtCore, QtGui, QtWidgets
from PySide6.QtCore import Qt

from api import ASPECT_RATIOS
from composer import Mode, PromptComposer, Submission, run_submission
from errors import SubmissionInFlightError
from placeholder import placeholder_png
from session import SessionController, SessionSnapshot, Status

logger = logging.getLogger(__name__)


class SubmissionWorker(QtCore.QObject):
    finished = QtCore.Signal(bool)
    # emit exception objects so caller can inspect type
    error = QtCore.Signal(object)

    def __init__(self, controller: SessionController, submission: Submission):
        super().__init__()
        self.controller = controller
        self.submission = submission

    @QtCore.Slot()
    def run(self):
        try:
            # The controller records gateway failures itself; only misuse ends up here
            self.finished.emit(run_submission(self.controller, self.submission))
        except Exception as e:
            self.error.emit(e)


class SessionBridge(QtCore.QObject):
    """Re-emits controller notifications as a Qt signal.

    Notifications fire on the worker thread; connecting ``changed`` to a
    widget slot queues them onto the GUI thread.
    """
    changed = QtCore.Signal(object)

    def __init__(self, controller: SessionController):
        super().__init__()
        self._unsubscribe = controller.subscribe(self.changed.emit)

    def detach(self):
        self._unsubscribe()


class PromptEdit(QtWidgets.QPlainTextEdit):
    """Prompt editor: Return submits, Shift+Return inserts a newline."""

    def __init__(self, composer: PromptComposer, parent=None):
        super().__init__(parent)
        self.composer = composer

    def keyPressEvent(self, event: QtGui.QKeyEvent):
        if event.key() in (Qt.Key_Return, Qt.Key_Enter):
            shift = bool(event.modifiers() & Qt.ShiftModifier)
            if self.composer.handle_return(shift):
                event.accept()
                return
        super().keyPressEvent(event)


class FullscreenViewer(QtWidgets.QDialog):
    def __init__(self, pixmap: QtGui.QPixmap, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Sketch")
        self.setStyleSheet("background: #000;")
        self._pixmap = pixmap
        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self.label = QtWidgets.QLabel(alignment=Qt.AlignCenter)
        layout.addWidget(self.label)

    def resizeEvent(self, event: QtGui.QResizeEvent):
        super().resizeEvent(event)
        self.label.setPixmap(self._pixmap.scaled(self.label.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation))

    def keyPressEvent(self, event: QtGui.QKeyEvent):
        if event.key() == Qt.Key_Escape:
            self.close()
            return
        super().keyPressEvent(event)

    def mousePressEvent(self, event: QtGui.QMouseEvent):
        self.close()


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, controller: SessionController, default_aspect_ratio: str = "1:1"):
        super().__init__()
        self.setWindowTitle("SketchGenius")
        self.resize(900, 760)
        self.setMinimumSize(600, 480)

        self.controller = controller
        self.composer = PromptComposer(self._dispatch, aspect_ratio=default_aspect_ratio)
        self.current_pixmap = None
        self._rendered_artifact = None
        self._thread = None
        self._worker = None

        central = QtWidgets.QWidget()
        self.setCentralWidget(central)
        layout = QtWidgets.QVBoxLayout(central)

        # Error banner
        self.error_banner = QtWidgets.QFrame()
        self.error_banner.setObjectName("errorBanner")
        banner_layout = QtWidgets.QHBoxLayout(self.error_banner)
        self.error_label = QtWidgets.QLabel("")
        self.error_label.setWordWrap(True)
        banner_layout.addWidget(self.error_label, stretch=1)
        self.dismiss_btn = QtWidgets.QPushButton("Dismiss")
        self.dismiss_btn.clicked.connect(lambda: self.controller.dismiss_error())
        banner_layout.addWidget(self.dismiss_btn)
        self.error_banner.setVisible(False)
        layout.addWidget(self.error_banner)

        # History toolbar
        toolbar = QtWidgets.QHBoxLayout()
        self.undo_btn = QtWidgets.QPushButton("Undo")
        self.undo_btn.clicked.connect(lambda: self.controller.undo())
        self.undo_btn.setVisible(False)
        toolbar.addWidget(self.undo_btn)
        toolbar.addStretch()
        self.fullscreen_btn = QtWidgets.QPushButton("Fullscreen")
        self.fullscreen_btn.clicked.connect(self.on_fullscreen)
        toolbar.addWidget(self.fullscreen_btn)
        self.download_btn = QtWidgets.QPushButton("Download...")
        self.download_btn.clicked.connect(self.on_download)
        toolbar.addWidget(self.download_btn)
        layout.addLayout(toolbar)

        # Sketch display
        self.image_label = QtWidgets.QLabel(alignment=Qt.AlignCenter)
        self.image_label.setMinimumSize(300, 200)
        self.image_label.setStyleSheet("background: #1e293b; border: 1px solid #334155;")
        layout.addWidget(self.image_label, stretch=1)
        self._placeholder = QtGui.QPixmap()
        self._placeholder.loadFromData(placeholder_png())

        busy_row = QtWidgets.QHBoxLayout()
        self.progress = QtWidgets.QProgressBar()
        self.progress.setRange(0, 0)
        self.progress.setFixedWidth(160)
        self.progress.setVisible(False)
        busy_row.addWidget(self.progress)
        self.status_label = QtWidgets.QLabel("")
        busy_row.addWidget(self.status_label, stretch=1)
        layout.addLayout(busy_row)

        # Mode tabs, only shown once a sketch exists
        tabs_row = QtWidgets.QHBoxLayout()
        self.refine_tab = QtWidgets.QPushButton("Refine Sketch")
        self.refine_tab.setCheckable(True)
        self.refine_tab.clicked.connect(lambda: self._select_mode(Mode.EDIT))
        self.create_tab = QtWidgets.QPushButton("New Sketch")
        self.create_tab.setCheckable(True)
        self.create_tab.clicked.connect(lambda: self._select_mode(Mode.CREATE))
        tabs_row.addWidget(self.refine_tab)
        tabs_row.addWidget(self.create_tab)
        tabs_row.addStretch()
        layout.addLayout(tabs_row)

        # Prompt row
        prompt_row = QtWidgets.QHBoxLayout()
        self.prompt_edit = PromptEdit(self.composer)
        self.prompt_edit.setFixedHeight(70)
        self.prompt_edit.textChanged.connect(self._on_draft_changed)
        prompt_row.addWidget(self.prompt_edit, stretch=1)
        self.settings_btn = QtWidgets.QPushButton("Settings")
        self.settings_btn.setCheckable(True)
        self.settings_btn.toggled.connect(self._refresh_controls)
        prompt_row.addWidget(self.settings_btn)
        self.submit_btn = QtWidgets.QPushButton("Sketch")
        self.submit_btn.setMinimumWidth(100)
        self.submit_btn.clicked.connect(lambda: self.composer.submit())
        prompt_row.addWidget(self.submit_btn)
        layout.addLayout(prompt_row)

        # Generation settings (create mode only)
        self.settings_row = QtWidgets.QWidget()
        settings_layout = QtWidgets.QHBoxLayout(self.settings_row)
        settings_layout.setContentsMargins(0, 0, 0, 0)
        settings_layout.addWidget(QtWidgets.QLabel("Aspect:"))
        self.aspect_ratio = QtWidgets.QComboBox()
        self.aspect_ratio.addItems(list(ASPECT_RATIOS))
        self.aspect_ratio.setCurrentText(self.composer.aspect_ratio)
        self.aspect_ratio.currentTextChanged.connect(self.composer.set_aspect_ratio)
        settings_layout.addWidget(self.aspect_ratio)
        settings_layout.addStretch()
        layout.addWidget(self.settings_row)

        self._apply_dark_theme()

        self.bridge = SessionBridge(self.controller)
        self.bridge.changed.connect(self._render)
        self._render(self.controller.snapshot())

    def _apply_dark_theme(self):
        # Minimal dark stylesheet
        self.setStyleSheet("""
            QWidget { background-color: #0f172a; color: #e2e8f0; }
            QPlainTextEdit { background: #1e293b; color: #f8fafc; border: 1px solid #334155; }
            QPushButton { background: #1e293b; border: 1px solid #334155; padding: 6px; }
            QPushButton:hover { background: #334155; }
            QPushButton:checked { background: #4f46e5; color: white; }
            QFrame#errorBanner { background: #3b1219; border: 1px solid #7f1d1d; }
            QFrame#errorBanner QLabel { color: #f87171; background: transparent; }
        """)

    # --- submission ---

    def _dispatch(self, submission: Submission):
        if self._thread is not None:
            # a previous request is still winding down
            logger.info("Ignoring submission while a request is outstanding")
            return
        self._thread = QtCore.QThread()
        self._worker = SubmissionWorker(self.controller, submission)
        self._worker.moveToThread(self._thread)
        self._thread.started.connect(self._worker.run)
        self._worker.finished.connect(self._on_worker_finished)
        self._worker.error.connect(self._on_worker_error)
        # quit directly: closeEvent may be blocking the GUI thread in wait()
        self._worker.finished.connect(self._thread.quit, QtCore.Qt.DirectConnection)
        self._worker.error.connect(self._thread.quit, QtCore.Qt.DirectConnection)
        self._thread.finished.connect(self._on_thread_finished)
        self._thread.start()
        self._refresh_controls()

    def _on_worker_finished(self, ok: bool):
        self._render(self.controller.snapshot())

    def _on_worker_error(self, exc: object):
        self._render(self.controller.snapshot())
        if isinstance(exc, SubmissionInFlightError):
            self.status_label.setText(str(exc))
        else:
            logger.error("Submission failed unexpectedly: %r", exc)
            QtWidgets.QMessageBox.critical(self, "Sketch error", str(exc))

    def _on_thread_finished(self):
        if self._thread is not None:
            self._thread.deleteLater()
        self._thread = None
        self._worker = None
        self._render(self.controller.snapshot())

    # --- rendering ---

    def _render(self, snapshot: SessionSnapshot):
        self.composer.sync(snapshot)
        if self.prompt_edit.toPlainText() != self.composer.draft:
            self.prompt_edit.blockSignals(True)
            self.prompt_edit.setPlainText(self.composer.draft)
            self.prompt_edit.blockSignals(False)

        self.error_banner.setVisible(snapshot.status is Status.ERROR)
        self.error_label.setText(snapshot.error or "")

        self.undo_btn.setVisible(snapshot.can_undo)
        self.undo_btn.setText(f"Undo ({snapshot.history_depth})")

        if snapshot.current is not self._rendered_artifact:
            self._rendered_artifact = snapshot.current
            if snapshot.current is not None:
                pix = QtGui.QPixmap()
                if not pix.loadFromData(snapshot.current.data):
                    logger.warning("Could not decode %r for display", snapshot.current)
                self.current_pixmap = pix
            else:
                self.current_pixmap = None
            self._update_image_label()

        self.progress.setVisible(snapshot.is_busy)
        if snapshot.status is Status.GENERATING:
            self.status_label.setText("Artist is sketching...")
        elif snapshot.status is Status.EDITING:
            self.status_label.setText("Applying adjustments...")
        elif snapshot.status is Status.SUCCESS:
            self.status_label.setText("Done")
        else:
            self.status_label.setText("")

        self._refresh_controls()

    def _refresh_controls(self, *_):
        composer = self.composer
        busy = composer.busy or self._thread is not None
        has_image = self.current_pixmap is not None

        self.refine_tab.setVisible(composer.has_image)
        self.create_tab.setVisible(composer.has_image)
        self.refine_tab.setChecked(composer.mode is Mode.EDIT)
        self.create_tab.setChecked(composer.mode is Mode.CREATE)

        self.prompt_edit.setEnabled(not busy)
        self.prompt_edit.setPlaceholderText(composer.placeholder_text)
        self.settings_btn.setVisible(composer.show_settings)
        self.settings_row.setVisible(composer.show_settings and self.settings_btn.isChecked())
        self.submit_btn.setText("Sketch" if composer.mode is Mode.CREATE else "Refine")
        self.submit_btn.setEnabled(composer.can_submit and not busy)

        self.fullscreen_btn.setEnabled(has_image)
        self.download_btn.setEnabled(has_image)

    def _on_draft_changed(self):
        self.composer.draft = self.prompt_edit.toPlainText()
        self._refresh_controls()

    def _select_mode(self, mode: Mode):
        self.composer.select_mode(mode)
        if self.prompt_edit.toPlainText() != self.composer.draft:
            self.prompt_edit.setPlainText(self.composer.draft)
        self._refresh_controls()

    def resizeEvent(self, event: QtGui.QResizeEvent):
        super().resizeEvent(event)
        self._update_image_label()

    def _update_image_label(self):
        pix = self.current_pixmap if self.current_pixmap is not None else self._placeholder
        scaled = pix.scaled(self.image_label.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation)
        self.image_label.setPixmap(scaled)

    # --- read-only actions ---

    def on_fullscreen(self):
        if self.current_pixmap is None:
            return
        viewer = FullscreenViewer(self.current_pixmap, self)
        viewer.setWindowState(Qt.WindowFullScreen)
        viewer.exec()

    def on_download(self):
        artifact = self.controller.snapshot().current
        if artifact is None:
            return
        default_dir = QtCore.QStandardPaths.writableLocation(QtCore.QStandardPaths.PicturesLocation) or os.path.expanduser("~/Pictures")
        default_path = os.path.join(default_dir, artifact.suggested_filename())
        path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, "Download sketch", default_path, f"Images (*.{artifact.extension})")
        if not path:
            return
        try:
            with open(path, 'wb') as f:
                f.write(artifact.data)
            self.status_label.setText(f"Saved to {path}")
            logger.info("Saved sketch to %s", path)
        except OSError as e:
            QtWidgets.QMessageBox.warning(self, "Save failed", str(e))

    def closeEvent(self, event):
        self.bridge.detach()
        # A request in flight cannot be cancelled; let it run to completion
        if self._thread is not None:
            self.status_label.setText("Waiting for the current request to finish...")
            self._thread.wait()
        event.accept()
