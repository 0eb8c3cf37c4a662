"""mdtexpreview - live incremental preview for Markdown with embedded LaTeX.

Documents are split into independently recompilable blocks; edits re-render
only the blocks that changed through a two-stage Pandoc pipeline
(Markdown -> LaTeX -> HTML), and the preview scroll follows the editor.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

__version__ = "0.1.0"


def _setup_logging(log_dir: Path) -> None:
    """Configure logging to both console and rotating file."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"mdtexpreview.{os.getpid()}.log"

    # Root logger config
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # File handler - detailed logging with rotation (10MB, keep 5 backups)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler.setFormatter(file_formatter)

    # Console handler - less verbose
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_formatter = logging.Formatter("%(levelname)s: %(message)s")
    console_handler.setFormatter(console_formatter)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.info("Logging configured. Log file: %s", log_file.absolute())


def main() -> None:
    """Entry point for the preview host."""
    from nicegui import app, ui

    from mdtexpreview.config import get_settings
    from mdtexpreview.preview import get_controller

    settings = get_settings()
    _setup_logging(settings.app.log_dir)

    import mdtexpreview.pages  # noqa: F401 - registers routes

    @app.on_shutdown
    def shutdown() -> None:
        get_controller().close_all()

    print(f"mdtexpreview v{__version__}")
    print(f"Starting preview on http://{settings.app.host}:{settings.app.port}")

    ui.run(
        host=settings.app.host,
        port=settings.app.port,
        reload=settings.app.reload,
        storage_secret=settings.app.storage_secret.get_secret_value(),
        title="mdtexpreview",
    )


if __name__ in {"__main__", "__mp_main__"}:
    main()
