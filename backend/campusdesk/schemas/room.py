from __future__ import annotations

from pydantic import Field

from campusdesk.schemas.common import CamelModel


class ComponentOut(CamelModel):
    id: str
    name: str
    count: int
    category: str


class BlockOut(CamelModel):
    id: str
    name: str
    floors: list[int]
    description: str


class RoomOut(CamelModel):
    code: str
    name: str
    type: str
    floor: int | None = None
    components: list[ComponentOut] = Field(default_factory=list)


class RoomComponentsOut(CamelModel):
    components: list[ComponentOut]
    components_by_category: dict[str, list[ComponentOut]]
