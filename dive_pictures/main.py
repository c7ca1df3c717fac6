import sys
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QStandardPaths, Qt, QUrl
from PySide6.QtGui import QAction, QDesktopServices, QKeySequence
from PySide6.QtWidgets import QApplication, QMainWindow

from dive_pictures.dive import Dive, DiveLog
from dive_pictures.image_engine.downloader import PictureFetcher
from dive_pictures.image_engine.hash_registry import HashRegistry, default_registry
from dive_pictures.image_engine.thumbnails import ThumbnailScaler
from dive_pictures.logger import get_logger, setup_logger
from dive_pictures.picture_model import DivePictureModel
from dive_pictures.settings_manager import SettingsManager
from dive_pictures.ui_picture_widget import DivePictureWidget

# --- CLI logging options -----------------------------------------------------
# To prevent Qt from exiting due to unknown options, we preemptively parse
# our own options, reflect them in environment variables (DIVE_PICTURES_LOG_LEVEL,
# DIVE_PICTURES_LOG_CATS), and drop them from the argument list.


def _apply_cli_logging_options(argv: list[str]) -> list[str]:
    import argparse
    import os

    parser = argparse.ArgumentParser(description="Dive Pictures", add_help=False)
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    args, remaining = parser.parse_known_args(argv[1:])
    if args.log_level:
        os.environ["DIVE_PICTURES_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["DIVE_PICTURES_LOG_CATS"] = args.log_cats
    setup_logger()
    return [argv[0], *remaining]


logger = get_logger("main")


class DivePicturesWindow(QMainWindow):
    def __init__(self, model: DivePictureModel, registry: HashRegistry, icon_size: int):
        super().__init__()
        self.setWindowTitle("Dive Pictures")
        self.model = model

        self.widget = DivePictureWidget(self, registry=registry)
        self.widget.set_icon_size(icon_size)
        self.widget.setModel(model)
        self.widget.photo_double_clicked.connect(self._open_photo)
        self.setCentralWidget(self.widget)

        remove_action = QAction("Remove picture", self.widget)
        remove_action.setShortcut(QKeySequence(QKeySequence.StandardKey.Delete))
        remove_action.triggered.connect(self._remove_selected)
        self.widget.addAction(remove_action)
        self.widget.setContextMenuPolicy(Qt.ContextMenuPolicy.ActionsContextMenu)

    def _open_photo(self, path: str) -> None:
        url = QUrl.fromUserInput(path)
        logger.info("opening %s", url.toString())
        if not QDesktopServices.openUrl(url):
            logger.warning("no application to open %s", path)

    def _remove_selected(self) -> None:
        filenames = {
            self.model.data(idx, Qt.ItemDataRole.ToolTipRole)
            for idx in self.widget.selectionModel().selectedIndexes()
        }
        for filename in filenames:
            if filename:
                logger.info("removing picture %s", filename)
                self.model.remove_picture(filename)


def build_dive_log(pictures: list[str], offset_step: int) -> DiveLog:
    dive_log = DiveLog()
    dive = Dive(number=1)
    for i, filename in enumerate(pictures):
        local = Path(filename).expanduser()
        if local.exists():
            filename = str(local.resolve())
        dive.add_picture(filename, offset_seconds=i * offset_step)
    dive_log.add_dive(dive)
    return dive_log


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(prog="dive-pictures", description="Show the pictures of a dive")
    parser.add_argument("pictures", nargs="*", help="Picture files or URLs")
    parser.add_argument("--settings", help="Settings JSON file")
    parser.add_argument(
        "--dive-offset-step", type=int, default=60, help="Seconds between consecutive pictures on the dive profile"
    )
    return parser


def run(argv: list[str] | None = None) -> int:
    """Application entrypoint (packaging-friendly)."""
    argv = _apply_cli_logging_options(list(sys.argv if argv is None else argv))
    args, qt_args = build_parser().parse_known_args(argv[1:])

    QCoreApplication.setApplicationName("dive_pictures")
    app = QApplication([argv[0], *qt_args])

    settings_path = args.settings or str(
        Path(QStandardPaths.writableLocation(QStandardPaths.StandardLocation.AppConfigLocation)) / "settings.json"
    )
    settings = SettingsManager(settings_path)

    registry = default_registry()
    registry.load(settings.hashes_file)
    fetcher = PictureFetcher(
        registry,
        settings.cache_dir,
        timeout=settings.download_timeout,
        max_workers=settings.download_workers,
    )
    scaler = ThumbnailScaler(settings.picture_icon_size, registry, fetcher)
    model = DivePictureModel(
        build_dive_log(args.pictures, args.dive_offset_step),
        scaler=scaler,
        fetcher=fetcher,
        scale_workers=settings.scale_workers,
    )
    DivePictureModel.set_instance(model)

    window = DivePicturesWindow(model, registry, settings.picture_icon_size)
    model.update_dive_pictures()
    window.resize(800, 600)
    window.show()

    try:
        return app.exec()
    finally:
        fetcher.shutdown()
        registry.save(settings.hashes_file)


if __name__ == "__main__":
    sys.exit(run())
