#
# SketchGenius v0.1
#
# GUI for Gemini sketch generation and editing using PySide6
# (C) Copyright 2025 Mika Jussila
#

import logging
import sys

from PySide6.QtWidgets import QApplication

from api import SketchGateway
from config import load_config
from gui import MainWindow
from session import SessionController


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    config = load_config()
    configure_logging(config.log_level)
    if not config.api_key:
        logging.getLogger(__name__).warning("GEMINI_API_KEY is not set; sketch requests will fail")

    gateway = SketchGateway(model=config.model, api_key=config.api_key)
    controller = SessionController(gateway)

    app = QApplication(sys.argv)
    window = MainWindow(controller, default_aspect_ratio=config.default_aspect_ratio)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
