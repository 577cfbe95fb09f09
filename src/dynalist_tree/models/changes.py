"""Edit changes sent to the Dynalist API and the caller intents they are planned from."""

from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass
from typing import Any, Literal, TypeVar

from dynalist_tree.errors import InvalidArgumentError
from dynalist_tree.models.node import FileType

InsertPosition = Literal["top", "bottom"]

T = TypeVar("T")


def _without_none(fields: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


# --- doc/edit changes ---


@dataclass(frozen=True)
class InsertChange:
    parent_id: str
    index: int
    content: str
    note: str | None = None
    checked: bool | None = None
    checkbox: bool | None = None
    heading: int | None = None
    color: int | None = None

    def to_api(self) -> dict[str, Any]:
        return {"action": "insert", **_without_none(asdict(self))}


@dataclass(frozen=True)
class EditChange:
    node_id: str
    content: str | None = None
    note: str | None = None
    checked: bool | None = None
    checkbox: bool | None = None
    heading: int | None = None
    color: int | None = None

    def to_api(self) -> dict[str, Any]:
        return {"action": "edit", **_without_none(asdict(self))}


@dataclass(frozen=True)
class MoveChange:
    node_id: str
    parent_id: str
    index: int

    def to_api(self) -> dict[str, Any]:
        return {"action": "move", **asdict(self)}


@dataclass(frozen=True)
class DeleteChange:
    node_id: str

    def to_api(self) -> dict[str, Any]:
        return {"action": "delete", "node_id": self.node_id}


DocChange = InsertChange | EditChange | MoveChange | DeleteChange


# --- file/edit changes ---


@dataclass(frozen=True)
class FileCreateChange:
    parent_id: str
    index: int
    title: str
    type: FileType = "document"

    def to_api(self) -> dict[str, Any]:
        return {"action": "create", **asdict(self)}


@dataclass(frozen=True)
class FileEditChange:
    file_id: str
    title: str
    type: FileType = "document"

    def to_api(self) -> dict[str, Any]:
        return {"action": "edit", **asdict(self)}


@dataclass(frozen=True)
class FileMoveChange:
    file_id: str
    parent_id: str
    index: int
    type: FileType = "document"

    def to_api(self) -> dict[str, Any]:
        return {"action": "move", **asdict(self)}


FileChange = FileCreateChange | FileEditChange | FileMoveChange


# --- Intents ---

_ATTRS = ("note", "checked", "checkbox", "heading", "color")


def _payload(
    data: Any, what: str, required: tuple[str, ...], optional: tuple[str, ...]
) -> dict[str, Any]:
    """Fields of one JSON object; required keys present and no unknown keys."""
    if not isinstance(data, Mapping):
        msg = f"Invalid {what}: expected an object, got {data!r}"
        raise InvalidArgumentError(msg)
    missing = [k for k in required if k not in data]
    if missing:
        msg = f"Invalid {what}: missing {', '.join(missing)}"
        raise InvalidArgumentError(msg)
    unknown = sorted(set(data) - set(required) - set(optional))
    if unknown:
        msg = f"Invalid {what}: unknown fields {', '.join(unknown)}"
        raise InvalidArgumentError(msg)
    return dict(data)


def parse_list(data: Any, parse: Callable[[Any], T], what: str) -> list[T]:
    """Parse a JSON array with one parser per element."""
    if not isinstance(data, list):
        msg = f"Invalid {what}: expected a list, got {data!r}"
        raise InvalidArgumentError(msg)
    return [parse(entry) for entry in data]


@dataclass(frozen=True)
class NewItem:
    """An item to insert."""

    content: str
    note: str | None = None
    checked: bool | None = None
    checkbox: bool | None = None
    heading: int | None = None
    color: int | None = None

    @classmethod
    def from_value(cls, data: Any) -> "NewItem":
        """A plain string, or an object with content and optional attributes."""
        if isinstance(data, str):
            return cls(content=data)
        return cls(**_payload(data, "item", ("content",), _ATTRS))

    def insert_at(self, parent_id: str, index: int) -> InsertChange:
        return InsertChange(
            parent_id=parent_id,
            index=index,
            content=self.content,
            note=self.note,
            checked=self.checked,
            checkbox=self.checkbox,
            heading=self.heading,
            color=self.color,
        )


@dataclass(frozen=True)
class ItemEdit:
    """Partial attribute update for one node."""

    node_id: str
    content: str | None = None
    note: str | None = None
    checked: bool | None = None
    checkbox: bool | None = None
    heading: int | None = None
    color: int | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "ItemEdit":
        return cls(**_payload(data, "edit", ("node_id",), ("content", *_ATTRS)))

    def to_change(self) -> EditChange:
        change = EditChange(**asdict(self))
        if len(change.to_api()) == 2:  # only action + node_id
            msg = f"No fields to update for node {self.node_id}"
            raise InvalidArgumentError(msg)
        return change


@dataclass(frozen=True)
class HierarchyNode:
    """One node of a nested tree to create."""

    content: str
    note: str | None = None
    checked: bool | None = None
    checkbox: bool | None = None
    heading: int | None = None
    color: int | None = None
    children: tuple["HierarchyNode", ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "HierarchyNode":
        """Build from a nested mapping such as {"content": "A", "children": [...]}."""
        fields = _payload(data, "hierarchy node", ("content",), (*_ATTRS, "children"))
        children = parse_list(fields.pop("children", None) or [], cls.from_dict, "children")
        return cls(children=tuple(children), **fields)

    def as_new_item(self) -> NewItem:
        return NewItem(
            content=self.content,
            note=self.note,
            checked=self.checked,
            checkbox=self.checkbox,
            heading=self.heading,
            color=self.color,
        )


@dataclass(frozen=True)
class RestructureMove:
    """Move node_id to new_index under new_parent (root when None)."""

    node_id: str
    new_index: int
    new_parent: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "RestructureMove":
        """Build from {"node_id", "new_index" (default 0), "new_parent"}."""
        fields = _payload(data, "move", ("node_id",), ("new_index", "new_parent"))
        try:
            new_index = int(fields.get("new_index", 0))
        except (TypeError, ValueError) as e:
            msg = f"Invalid move: new_index {fields.get('new_index')!r} is not an integer"
            raise InvalidArgumentError(msg) from e
        return cls(node_id=fields["node_id"], new_index=new_index, new_parent=fields.get("new_parent"))


@dataclass(frozen=True)
class MovePosition:
    """Where a moved node should land among its new siblings."""

    kind: Literal["top", "bottom", "index", "before", "after"]
    target: str | None = None
    index: int | None = None

    @classmethod
    def parse(cls, value: "MovePosition | str | int | Mapping[str, str]") -> "MovePosition":
        """Parse "top", "bottom", an index, "before:<id>", "after:<id>" or {"before": id}."""
        if isinstance(value, MovePosition):
            return value
        if isinstance(value, bool):
            msg = f"Invalid position: {value!r}"
            raise InvalidArgumentError(msg)
        if isinstance(value, int):
            return cls(kind="index", index=value)
        if isinstance(value, Mapping):
            for kind in ("before", "after"):
                if value.get(kind):
                    return cls(kind=kind, target=value[kind])
            msg = f"Invalid position: {value!r}"
            raise InvalidArgumentError(msg)
        if not isinstance(value, str):
            msg = f"Invalid position: {value!r}"
            raise InvalidArgumentError(msg)
        if value in ("top", "bottom"):
            return cls(kind=value)
        if value.lstrip("-").isdigit():
            return cls(kind="index", index=int(value))
        kind, sep, target = value.partition(":")
        if sep and kind in ("before", "after") and target:
            return cls(kind=kind, target=target)  # type: ignore[arg-type]
        msg = f"Invalid position: {value!r}"
        raise InvalidArgumentError(msg)
