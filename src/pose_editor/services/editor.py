from __future__ import annotations

from typing import Optional

from loguru import logger

from pose_editor.config import EditorSettings, get_settings
from pose_editor.models import FileOperationResult
from pose_editor.pose.codec import PoseDecodeError, add_extension, parse_filename, read_graph, write_graph
from pose_editor.pose.model import PoseModel
from pose_editor.pose.types import BoneGraph, EulerAngles


class PoseEditorService:
    """Coordinate the pose file lifecycle around a PoseModel."""

    def __init__(self, model: Optional[PoseModel] = None, settings: Optional[EditorSettings] = None) -> None:
        self.settings = settings or get_settings()
        self.last_result: Optional[FileOperationResult] = None
        if model is None:
            self.model = PoseModel(settings=self.settings)
            self.new_file()
        else:
            self.model = model

    # File lifecycle ---------------------------------------------------

    def new_file(self) -> None:
        """Start over with an empty, clean, untitled graph."""
        self.model.replace_graph(BoneGraph(origin_name=self.settings.untitled_name, loaded=False))
        self.model.set_saved(True)
        logger.info("Started new file {name}", name=self.settings.untitled_name)

    def open_file(self, path: str) -> bool:
        """Replace the current graph with the contents of ``path``."""
        logger.info("Opening {path}", path=path)
        try:
            graph = read_graph(path)
        except (OSError, UnicodeDecodeError, PoseDecodeError) as exc:
            return self._failed("open", path, exc)

        self.model.replace_graph(graph)
        self.model.set_saved(True)
        self.last_result = FileOperationResult(
            operation="open",
            success=True,
            path=graph.origin_path,
            file_name=graph.origin_name,
            bone_count=len(graph.bones),
        )
        logger.info("Opened {path} with {count} bone(s)", path=path, count=len(graph.bones))
        return True

    def save_file(self, path: str) -> bool:
        """Write the current graph to ``path`` with its extension normalized."""
        if not path:
            return self._failed("save", path, ValueError("No file path given"))

        try:
            target = add_extension(path, self.settings.file_extension)
        except ValueError as exc:
            return self._failed("save", path, exc)

        snapshot = self.model.current_snapshot()
        try:
            write_graph(snapshot, target)
        except OSError as exc:
            return self._failed("save", target, exc)

        file_name = parse_filename(target)
        self.model.set_file_path(target)
        self.model.set_file_name(file_name)
        self.model.set_loaded(True)
        self.model.set_saved(True)
        self.last_result = FileOperationResult(
            operation="save",
            success=True,
            path=target,
            file_name=file_name,
            bone_count=len(snapshot.bones),
        )
        logger.info("Saved {count} bone(s) to {path}", count=len(snapshot.bones), path=target)
        return True

    def save(self) -> bool:
        """Save back to the file the graph came from; only valid once loaded."""
        snapshot = self.model.current_snapshot()
        if not snapshot.loaded or not snapshot.origin_path:
            return self._failed(
                "save",
                snapshot.origin_name or self.settings.untitled_name,
                ValueError("Graph has no file to save to"),
            )
        return self.save_file(snapshot.origin_path)

    # Bone commands ----------------------------------------------------

    def add_bone(self, parent_id: int) -> int:
        return self.model.add_bone(parent_id)

    def remove_bone(self, bone_id: int) -> None:
        self.model.remove_bone(bone_id)

    def move_up(self, bone_id: int) -> None:
        self.model.move_up(bone_id)

    def move_down(self, bone_id: int) -> None:
        self.model.move_down(bone_id)

    def set_rotation(self, bone_id: int, euler: EulerAngles) -> None:
        self.model.set_rotation(bone_id, euler)

    def set_name(self, bone_id: int, name: str) -> None:
        self.model.set_name(bone_id, name)

    def set_parent(self, bone_id: int, parent_id: int) -> None:
        self.model.set_parent(bone_id, parent_id)

    # Notification -----------------------------------------------------

    def is_dirty(self) -> bool:
        return self.model.is_dirty()

    def clear_dirty(self) -> None:
        self.model.clear_dirty()

    def current_snapshot(self) -> BoneGraph:
        return self.model.current_snapshot()

    def poll(self) -> Optional[BoneGraph]:
        """Return a fresh snapshot if anything changed since the last poll."""
        if not self.model.is_dirty():
            return None
        self.model.clear_dirty()
        return self.model.current_snapshot()

    # Internal helpers -------------------------------------------------

    def _failed(self, operation: str, path: str, exc: Exception) -> bool:
        path = path or "<empty>"
        logger.error("Unable to {operation} {path}: {error}", operation=operation, path=path, error=exc)
        self.last_result = FileOperationResult(
            operation=operation,
            success=False,
            path=path,
            file_name=parse_filename(path),
            message=str(exc),
        )
        return False


__all__ = [
    "PoseEditorService",
]
