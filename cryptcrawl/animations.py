"""Animation frame tables loaded from sprite-sheet description files."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Iterable, Sequence, Union

from cryptcrawl.components import AnimationFrame, AnimationId, Direction, EntityType

FrameData = dict[str, str]

_DIRECTIONS = (Direction.UP, Direction.LEFT, Direction.BOTTOM, Direction.RIGHT)
_INT_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True)
class GenericAnimationKey:
    id: AnimationId
    direction: Direction


@dataclass(frozen=True)
class EntityAnimationKey:
    id: AnimationId
    direction: Direction
    entity_type: EntityType


AnimationKey = Union[GenericAnimationKey, EntityAnimationKey]


@dataclass
class AnimationNode:
    """A parsed block of a description file: category, key/value data and children."""

    category: str
    data: FrameData = field(default_factory=dict)
    children: list["AnimationNode"] = field(default_factory=list)


_GENERIC_KEYS: tuple[GenericAnimationKey, ...] = tuple(
    GenericAnimationKey(anim, direction)
    for anim in (
        AnimationId.GENERIC_SPELL_CAST,
        AnimationId.GENERIC_THRUST_UNARMED,
        AnimationId.GENERIC_WALK,
        AnimationId.GENERIC_SLASH_UNARMED,
        AnimationId.GENERIC_SHOOT,
    )
    for direction in _DIRECTIONS
) + (GenericAnimationKey(AnimationId.GENERIC_HURT, Direction.BOTTOM),)

_PLAYER_KEYS: tuple[EntityAnimationKey, ...] = tuple(
    EntityAnimationKey(anim, direction, EntityType.PLAYER)
    for anim in (AnimationId.ATTACK1, AnimationId.ATTACK2, AnimationId.ATTACK3)
    for direction in _DIRECTIONS
)

_SKLETORUS_KEYS: tuple[EntityAnimationKey, ...] = tuple(
    EntityAnimationKey(AnimationId.ATTACK1, direction, EntityType.SKLETORUS)
    for direction in _DIRECTIONS
)

_ANIMATION_FILES: tuple[tuple[str, Sequence[AnimationKey]], ...] = (
    ("assets/entities/genericAnimations.txt", _GENERIC_KEYS),
    ("assets/entities/player/animations.txt", _PLAYER_KEYS),
    ("assets/entities/skeleton_axe/animations.txt", _SKLETORUS_KEYS),
)


def read_file_content(path: Union[str, Path]) -> str:
    """Return the whole text of ``path``, or an empty string if it cannot be read."""
    try:
        return Path(path).read_text()
    except OSError:
        return ""


def _parse_int(data: FrameData, key: str, default: int = 0) -> int:
    value = data.get(key)
    if value is None:
        return default
    match = _INT_RE.match(value)
    if match is None:
        raise ValueError(f"{key}: not an integer: {value!r}")
    return int(match.group(1))


def _parse_float(data: FrameData, key: str, default: float = 0.0) -> float:
    value = data.get(key)
    if value is None:
        return default
    match = _FLOAT_RE.match(value)
    if match is None:
        raise ValueError(f"{key}: not a number: {value!r}")
    return float(match.group(1))


def make_frame(data: FrameData) -> AnimationFrame:
    """Build a frame from its key/value data; missing keys count as zero."""
    return AnimationFrame(
        frame_rect=(
            _parse_int(data, "frameLeft"),
            _parse_int(data, "frameTop"),
            _parse_int(data, "frameWidth"),
            _parse_int(data, "frameHeight"),
        ),
        offset=(_parse_float(data, "frameOffsetX"), _parse_float(data, "frameOffsetY")),
    )


class AnimationHolder:
    """Holds the frame lists of every generic and entity-specific animation."""

    def __init__(self) -> None:
        self._animations: dict[AnimationKey, list[AnimationFrame]] = {}

    def load_animations(
        self,
        parse: Callable[[str], Iterable[AnimationNode]],
        root: Union[str, Path] = ".",
    ) -> None:
        """Read every animation file below ``root`` and parse it with ``parse``."""
        base = Path(root)
        for relative, keys in _ANIMATION_FILES:
            text = read_file_content(base / relative)
            self.load_nodes(parse(text), keys.__getitem__)

    def load_nodes(
        self,
        nodes: Iterable[AnimationNode],
        key_for_id: Callable[[int], AnimationKey],
    ) -> None:
        """Store the frames of each node under the key its animation id maps to."""
        for node in nodes:
            anim_id = 0
            if node.category == "spritesheetData":
                anim_id = _parse_int(node.data, "animationId")
            frames = [
                make_frame(child.data) for child in node.children if child.category == "frame"
            ]
            self._animations[key_for_id(anim_id)] = frames

    def get(self, key: AnimationKey) -> list[AnimationFrame]:
        """Return the frames for ``key``; the hurt animation has only one direction."""
        if isinstance(key, GenericAnimationKey) and key.id is AnimationId.GENERIC_HURT:
            key = replace(key, direction=Direction.BOTTOM)
        try:
            return self._animations[key]
        except KeyError:
            raise KeyError(f"no animation for {key}") from None