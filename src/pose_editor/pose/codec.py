"""
Pose file codec.

A pose file holds one bone per line::

    id, parent, qx, qy, qz, qw, name

The name is everything after the sixth comma with its first character (the
separator space written by ``encode_graph``) removed. A hand-edited name
without that space loses its first character. Names are written as-is. Only
"\n" separates lines (a "\r" before it is dropped), so a name may hold any
other character except "\n" and a trailing "\r".
"""

from pathlib import Path, PureWindowsPath
from typing import Dict, Optional, Union

from loguru import logger

from pose_editor.pose.rotation import quaternion_to_euler
from pose_editor.pose.types import ROOT_PARENT, Bone, BoneGraph

FIELD_COUNT = 7
FIELD_SEPARATOR = ", "
DEFAULT_EXTENSION = ".csv"

PathLike = Union[str, Path]


class PoseDecodeError(ValueError):
    """Raised when pose file text cannot be turned into a BoneGraph."""

    def __init__(
        self,
        message: str,
        path: str = "",
        row: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self.message = message
        self.path = path
        self.row = row  # 1-based line number
        self.column = column  # 0-based field index
        super().__init__(self._describe())

    def _describe(self) -> str:
        source = f"'{self.path}'" if self.path else "<text>"
        location = ""
        if self.row is not None:
            location = f" [row {self.row}" + (f", col {self.column}]" if self.column is not None else "]")
        return f"Trouble reading {source}{location}: {self.message}"


def parse_filename(path: PathLike) -> str:
    """Return the last component of ``path``, splitting on both ``/`` and ``\\``."""
    return PureWindowsPath(str(path)).name


def add_extension(path: PathLike, extension: str = DEFAULT_EXTENSION) -> str:
    """Replace (or add) the extension of ``path`` with ``extension``."""
    path = Path(path)
    if path.name.endswith("."):
        path = path.with_name(path.name.rstrip("."))
    return str(path.with_suffix(extension))


def _parse_line(line: str, row: int, path: str) -> Bone:
    fields = line.split(",", FIELD_COUNT - 1)
    if len(fields) < FIELD_COUNT:
        raise PoseDecodeError(
            f"Premature end of line. Expected {FIELD_COUNT} items.",
            path=path,
            row=row,
            column=len(fields),
        )

    column = 0
    try:
        bone_id = int(fields[0])
        column = 1
        parent = int(fields[1])
        quat = []
        for column in range(2, 6):
            quat.append(float(fields[column]))
    except ValueError as exc:
        raise PoseDecodeError("Value could not be parsed.", path=path, row=row, column=column) from exc

    name_field = fields[6]
    if not name_field:
        raise PoseDecodeError("Name field is empty.", path=path, row=row, column=6)

    quaternion = (quat[0], quat[1], quat[2], quat[3])
    return Bone(
        id=bone_id,
        parent=parent,
        quaternion=quaternion,
        euler=quaternion_to_euler(quaternion),
        name=name_field[1:],
    )


def _check_integrity(graph: BoneGraph, rows: Dict[int, int], path: str) -> None:
    ids: Dict[int, int] = {}
    names: Dict[str, int] = {}
    for position, bone in enumerate(graph.bones):
        if bone.id == ROOT_PARENT:
            raise PoseDecodeError(
                f"Bone id {bone.id} is reserved for the root.", path=path, row=rows[position], column=0
            )
        if bone.id in ids:
            raise PoseDecodeError(f"Duplicate bone id {bone.id}.", path=path, row=rows[position], column=0)
        if bone.name in names:
            raise PoseDecodeError(f"Duplicate bone name '{bone.name}'.", path=path, row=rows[position], column=6)
        ids[bone.id] = position
        names[bone.name] = position

    for bone in graph.bones:
        if bone.parent != ROOT_PARENT and bone.parent not in ids:
            logger.warning(
                "Bone {bone_id} in {path} references missing parent {parent}; attaching it to the root",
                bone_id=bone.id,
                path=path or "<text>",
                parent=bone.parent,
            )
            bone.parent = ROOT_PARENT

    # every chain of parents must reach the root within len(bones) links
    acyclic = set()
    for position, bone in enumerate(graph.bones):
        chain = []
        current = bone.id
        while current in ids and current not in acyclic:
            if current in chain:
                raise PoseDecodeError(
                    f"Parent links from bone {bone.id} form a loop.", path=path, row=rows[position], column=1
                )
            chain.append(current)
            current = graph.bones[ids[current]].parent
        acyclic.update(chain)


def parse_graph(text: str, path: PathLike = "") -> BoneGraph:
    """
    Decode pose file text.

    Blank lines are skipped. Each bone's Euler angles are derived from its
    quaternion. Raises PoseDecodeError on the first malformed line, or when
    the file repeats an id or a name or contains a parent loop.
    """
    path = str(path)
    graph = BoneGraph(origin_path=path, origin_name=parse_filename(path) if path else "")
    rows: Dict[int, int] = {}

    for line_number, line in enumerate(text.split("\n"), start=1):
        if line.endswith("\r"):
            line = line[:-1]
        if not line.strip():
            continue
        rows[len(graph.bones)] = line_number
        graph.bones.append(_parse_line(line, line_number, path))

    _check_integrity(graph, rows, path)
    graph.loaded = True
    graph.saved = True
    return graph


def decode_graph(text: str, path: PathLike = "") -> BoneGraph:
    """
    Decode pose file text, returning a failed graph instead of raising.

    A failed graph has no bones and ``loaded`` set to False but keeps the
    origin path and name.
    """
    try:
        return parse_graph(text, path)
    except PoseDecodeError as exc:
        logger.error("{error}", error=str(exc))
        path = str(path)
        return BoneGraph(origin_path=path, origin_name=parse_filename(path) if path else "", loaded=False)


def _format_float(value: float) -> str:
    return f"{value:g}"


def encode_graph(graph: BoneGraph) -> str:
    """Encode ``graph`` as pose file text, without a trailing newline."""
    lines = []
    for bone in graph.bones:
        fields = [str(bone.id), str(bone.parent)]
        fields.extend(_format_float(component) for component in bone.quaternion)
        fields.append(bone.name)
        lines.append(FIELD_SEPARATOR.join(fields))
    return "\n".join(lines)


def read_graph(path: PathLike) -> BoneGraph:
    """Read and decode a pose file. Raises OSError or PoseDecodeError."""
    logger.debug("Reading pose file {path}", path=str(path))
    with open(path, encoding="utf-8", newline="") as handle:
        text = handle.read()
    return parse_graph(text, path)


def write_graph(graph: BoneGraph, path: PathLike) -> None:
    """Encode ``graph`` and write it to ``path``. Raises OSError."""
    logger.debug("Writing {count} bone(s) to {path}", count=len(graph.bones), path=str(path))
    with open(path, "w", encoding="utf-8", newline="") as handle:
        handle.write(encode_graph(graph))
