# ================================
# file: core/types.py
# ================================
"""Shared data structures for grid positions, robot pose and level items.
Use minimal typing: Tuple/Optional/Dict/Sequence only.
"""
from __future__ import annotations
from typing import NamedTuple, Sequence, Dict, List


class Position(NamedTuple):
    """Grid cell (x, y). x grows to the East, y grows to the South."""
    x: int
    y: int

    def key(self) -> str:
        """Set key used for collected goals, e.g. "3,2"."""
        return f"{self.x},{self.y}"

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data) -> "Position":
        if isinstance(data, Position):
            return data
        if isinstance(data, dict):
            return cls(int(data["x"]), int(data["y"]))
        x, y = data
        return cls(int(x), int(y))


class RobotState:
    """Pose of the robot on the grid.

    Attributes
    -----------
    x, y : cells
    rotation : degrees, any integer; reduced modulo 360 when used
    """
    __slots__ = ("x", "y", "rotation")

    def __init__(self, x: int, y: int, rotation: int) -> None:
        self.x = int(x)
        self.y = int(y)
        self.rotation = int(rotation)

    def copy(self) -> "RobotState":
        return RobotState(self.x, self.y, self.rotation)

    @property
    def position(self) -> Position:
        return Position(self.x, self.y)

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "rotation": self.rotation}

    def __eq__(self, other) -> bool:
        if not isinstance(other, RobotState):
            return NotImplemented
        return (self.x, self.y, self.rotation) == (other.x, other.y, other.rotation)

    def __repr__(self) -> str:
        return f"RobotState(x={self.x}, y={self.y}, rotation={self.rotation})"


class KeyItem:
    """A key lying on the grid. `id` is a colour token shared with its door."""
    __slots__ = ("id", "position")

    def __init__(self, id: str, position: Position) -> None:
        self.id = str(id)
        self.position = Position.from_dict(position)

    def to_dict(self) -> Dict:
        return {"id": self.id, "position": self.position.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict) -> "KeyItem":
        return cls(data["id"], Position.from_dict(data["position"]))

    def __eq__(self, other) -> bool:
        if not isinstance(other, KeyItem):
            return NotImplemented
        return self.id == other.id and self.position == other.position

    def __repr__(self) -> str:
        return f"KeyItem(id={self.id!r}, position={tuple(self.position)})"


class DoorItem(KeyItem):
    """A door; passable once the key with the same id has been collected."""
    __slots__ = ()

    def __repr__(self) -> str:
        return f"DoorItem(id={self.id!r}, position={tuple(self.position)})"


class ColoredCell:
    """Paint state of one cell. Colours are stored lower case ("red")."""
    __slots__ = ("position", "color")

    def __init__(self, position: Position, color: str) -> None:
        self.position = Position.from_dict(position)
        self.color = str(color).lower()

    def to_dict(self) -> Dict:
        return {"position": self.position.to_dict(), "color": self.color}

    @classmethod
    def from_dict(cls, data: Dict) -> "ColoredCell":
        return cls(Position.from_dict(data["position"]), data["color"])

    def __eq__(self, other) -> bool:
        if not isinstance(other, ColoredCell):
            return NotImplemented
        return self.color == other.color and self.position == other.position

    def __repr__(self) -> str:
        return f"ColoredCell(position={tuple(self.position)}, color={self.color!r})"


class FunctionDefinition:
    """Body of one routine slot (F0/F1/F2)."""
    __slots__ = ("name", "commands")

    def __init__(self, name: str, commands: Sequence[str] = ()) -> None:
        self.name = name
        self.commands: List[str] = list(commands)

    def copy(self) -> "FunctionDefinition":
        return FunctionDefinition(self.name, self.commands)

    def __repr__(self) -> str:
        return f"FunctionDefinition(name={self.name!r}, commands={self.commands!r})"
