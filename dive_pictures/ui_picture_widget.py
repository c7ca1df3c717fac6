"""List view showing the pictures of the displayed dive as icons."""

from __future__ import annotations

from PySide6.QtCore import QModelIndex, QSize, Qt, Signal
from PySide6.QtWidgets import QListView, QWidget

from .image_engine.hash_registry import HashRegistry, default_registry
from .logger import get_logger

_logger = get_logger("ui_picture_widget")


class DivePictureWidget(QListView):
    photo_double_clicked = Signal(str)  # local file path

    def __init__(self, parent: QWidget | None = None, registry: HashRegistry | None = None) -> None:
        super().__init__(parent)
        self._registry = registry if registry is not None else default_registry()
        self.setViewMode(QListView.ViewMode.IconMode)
        self.setResizeMode(QListView.ResizeMode.Adjust)
        self.setMovement(QListView.Movement.Static)
        self.setUniformItemSizes(True)
        self.setWordWrap(True)
        self.doubleClicked.connect(self._on_double_clicked)

    def set_icon_size(self, size: int) -> None:
        self.setIconSize(QSize(size, size))

    def _on_double_clicked(self, index: QModelIndex) -> None:
        model = self.model()
        if model is None or not index.isValid():
            return
        file_path = model.data(index, Qt.ItemDataRole.DisplayPropertyRole)
        if not file_path:
            return
        local = self._registry.local_file_path(str(file_path))
        _logger.debug("photo double clicked: %s -> %s", file_path, local)
        self.photo_double_clicked.emit(local)
