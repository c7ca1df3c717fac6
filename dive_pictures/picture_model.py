from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt, Slot
from PySide6.QtGui import QImage

from dive_pictures.dive import DiveLog, Picture
from dive_pictures.image_engine.downloader import PictureFetcher
from dive_pictures.image_engine.hash_registry import default_registry
from dive_pictures.image_engine.metrics import metrics
from dive_pictures.image_engine.thumbnails import ThumbnailScaler
from dive_pictures.logger import get_logger
from dive_pictures.path_utils import file_name

_logger = get_logger("picture_model")

DEFAULT_ICON_SIZE = 128


@dataclass
class PictureEntry:
    offset_seconds: int = 0
    image: QImage = field(default_factory=QImage)


class DivePictureModel(QAbstractTableModel):
    """Pictures of the displayed dive, one row per picture.

    Column 0 carries the thumbnail and names, column 1 the time offset used
    to place the photo on the dive profile:

    - column 0: ToolTipRole -> filename, DecorationRole -> scaled QImage,
      DisplayRole -> file name, DisplayPropertyRole -> file path
    - column 1: UserRole -> offset in seconds, DisplayRole -> filename
    """

    COLUMN_COUNT = 2

    _instance: DivePictureModel | None = None

    @classmethod
    def instance(cls) -> DivePictureModel:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def set_instance(cls, model: DivePictureModel | None) -> None:
        cls._instance = model

    def __init__(
        self,
        dive_log: DiveLog | None = None,
        scaler: ThumbnailScaler | None = None,
        fetcher: PictureFetcher | None = None,
        scale_workers: int | None = None,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self._dive_log = dive_log if dive_log is not None else DiveLog()
        self._fetcher = fetcher
        if scaler is None:
            registry = fetcher.registry if fetcher is not None else default_registry()
            scaler = ThumbnailScaler(DEFAULT_ICON_SIZE, registry, fetcher)
        self._scaler = scaler
        self._scale_workers = scale_workers
        self._entries: dict[str, PictureEntry] = {}
        self._keys: list[str] = []
        self._number_of_pictures = 0
        self._role_getters = {
            (0, int(Qt.ItemDataRole.ToolTipRole)): lambda key, e: key,
            (0, int(Qt.ItemDataRole.DecorationRole)): lambda key, e: e.image,
            (0, int(Qt.ItemDataRole.DisplayRole)): lambda key, e: file_name(key),
            (0, int(Qt.ItemDataRole.DisplayPropertyRole)): lambda key, e: key,
            (1, int(Qt.ItemDataRole.UserRole)): lambda key, e: int(e.offset_seconds),
            (1, int(Qt.ItemDataRole.DisplayRole)): lambda key, e: key,
        }
        if fetcher is not None:
            fetcher.picture_downloaded.connect(self._on_picture_downloaded)

    @property
    def dive_log(self) -> DiveLog:
        return self._dive_log

    @property
    def scaler(self) -> ThumbnailScaler:
        return self._scaler

    # ---- refresh -------------------------------------------------
    def update_dive_pictures(self) -> None:
        if self._number_of_pictures != 0:
            self.beginRemoveRows(QModelIndex(), 0, self._number_of_pictures - 1)
            self._number_of_pictures = 0
            self._keys = []
            self.endRemoveRows()

        # With an empty dive table the displayed dive is stale.
        dive_log = self._dive_log
        count = 0 if dive_log.dive_count() == 0 else dive_log.displayed_dive.picture_count()
        if count == 0:
            self._entries.clear()
            return

        with metrics.timed("pictures.update_duration"):
            entries: dict[str, PictureEntry] = {}
            pictures: list[Picture] = []
            for picture in dive_log.displayed_dive.pictures:
                entries[picture.filename] = PictureEntry(offset_seconds=int(picture.offset_seconds))
                pictures.append(picture)

            with ThreadPoolExecutor(max_workers=self._scale_workers, thread_name_prefix="picture-scale") as pool:
                for picture, image in pool.map(self._scaler.scale_image, pictures):
                    entries[picture.filename].image = image

        self._entries = entries
        keys = list(entries)
        _logger.debug("update_dive_pictures: %d pictures", len(keys))

        self.beginInsertRows(QModelIndex(), 0, len(keys) - 1)
        self._keys = keys
        self._number_of_pictures = len(keys)
        self.endInsertRows()

    def update_dive_pictures_when_done(self, futures: list[Future]) -> None:
        wait([f for f in futures if f is not None])
        self.update_dive_pictures()

    @Slot(str)
    def _on_picture_downloaded(self, filename: str) -> None:
        _logger.debug("picture downloaded, refreshing: %s", filename)
        self.update_dive_pictures()

    # ---- Qt model basics -----------------------------------------
    def rowCount(self, parent: QModelIndex | None = None) -> int:  # type: ignore[override]
        if parent is not None and parent.isValid():
            return 0
        return self._number_of_pictures

    def columnCount(self, parent: QModelIndex | None = None) -> int:  # type: ignore[override]
        if parent is not None and parent.isValid():
            return 0
        return self.COLUMN_COUNT

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):  # type: ignore[override]
        if not index.isValid():
            return None

        row = int(index.row())
        if not (0 <= row < len(self._keys)):
            return None

        getter = self._role_getters.get((int(index.column()), int(role)))
        if getter is None:
            return None
        key = self._keys[row]
        return getter(key, self._entries[key])

    # ---- mutations -----------------------------------------------
    def remove_picture(self, file_url: str) -> None:
        dive_log = self._dive_log
        dive_log.remove_picture(file_url)
        dive_log.copy_current_to_displayed()
        self._scaler.invalidate(file_url)
        self.update_dive_pictures()
        dive_log.mark_changed(True)
