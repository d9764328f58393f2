"""Static catalog of campus blocks, bookable rooms and their equipment.

The tables are built once at import and exposed read-only. Room codes are a
block letter, a floor digit and a room number (``B201``); lookups uppercase
the code first.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class Component:
    id: str
    name: str
    count: int
    category: str


@dataclass(frozen=True)
class Block:
    id: str
    name: str
    floors: tuple[int, ...]
    description: str


@dataclass(frozen=True)
class RoomType:
    id: str
    name: str
    components: tuple[Component, ...]


@dataclass(frozen=True)
class RoomInfo:
    code: str
    name: str
    type: str
    components: tuple[Component, ...]

    @property
    def floor(self) -> int | None:
        if len(self.code) > 1 and self.code[1].isdigit():
            return int(self.code[1])
        return None


DEFAULT_ROOM_TYPE = "classroom"


def _components(*rows: tuple[str, str, int, str]) -> tuple[Component, ...]:
    return tuple(Component(id=row[0], name=row[1], count=row[2], category=row[3]) for row in rows)


BLOCKS: Mapping[str, Block] = MappingProxyType(
    {
        "A": Block("A", "A Block", (1, 2, 3, 4, 5), "Main Academic Block"),
        "B": Block("B", "B Block", (1, 2, 3, 4), "Laboratory Block"),
        "C": Block("C", "C Block", (1, 2, 3), "Computer Science Block"),
        "D": Block("D", "D Block", (1, 2, 3, 4), "Engineering Block"),
        "E": Block("E", "E Block", (1, 2), "Administrative Block"),
    }
)

ROOM_TYPES: Mapping[str, RoomType] = MappingProxyType(
    {
        "classroom": RoomType(
            "classroom",
            "Classroom",
            _components(
                ("projector", "Projector", 1, "AV Equipment"),
                ("whiteboard", "Whiteboard", 2, "Furniture"),
                ("fan", "Fan", 6, "HVAC"),
                ("air_conditioner", "Air Conditioner", 2, "HVAC"),
                ("lighting", "LED Light", 12, "Electrical"),
                ("desk", "Student Desk", 40, "Furniture"),
                ("chair", "Chair", 40, "Furniture"),
                ("teacher_desk", "Teacher Desk", 1, "Furniture"),
                ("power_outlet", "Power Outlet", 20, "Electrical"),
            ),
        ),
        "computer_lab": RoomType(
            "computer_lab",
            "Computer Lab",
            _components(
                ("computer", "Computer", 40, "Hardware"),
                ("monitor", "Monitor", 40, "Hardware"),
                ("keyboard", "Keyboard", 40, "Hardware"),
                ("mouse", "Mouse", 40, "Hardware"),
                ("projector", "Projector", 1, "AV Equipment"),
                ("whiteboard", "Whiteboard", 2, "Furniture"),
                ("fan", "Fan", 8, "HVAC"),
                ("air_conditioner", "Air Conditioner", 3, "HVAC"),
                ("network_switch", "Network Switch", 4, "Network"),
                ("server", "Server", 1, "Hardware"),
                ("ups", "UPS", 2, "Electrical"),
                ("lighting", "LED Light", 16, "Electrical"),
                ("desk", "Computer Desk", 40, "Furniture"),
                ("chair", "Chair", 40, "Furniture"),
                ("power_outlet", "Power Outlet", 50, "Electrical"),
            ),
        ),
        "ai_lab": RoomType(
            "ai_lab",
            "AI Research Lab",
            _components(
                ("computer", "High-end Computer", 25, "Hardware"),
                ("gpu_workstation", "GPU Workstation", 8, "Hardware"),
                ("monitor", "Monitor", 33, "Hardware"),
                ("projector", "4K Projector", 1, "AV Equipment"),
                ("server", "AI Server", 2, "Hardware"),
                ("network_switch", "Gigabit Switch", 3, "Network"),
                ("air_conditioner", "Precision AC", 4, "HVAC"),
                ("ups", "Enterprise UPS", 3, "Electrical"),
                ("whiteboard", "Smart Whiteboard", 2, "Furniture"),
                ("desk", "Workstation Desk", 25, "Furniture"),
                ("chair", "Ergonomic Chair", 25, "Furniture"),
                ("lighting", "LED Light", 20, "Electrical"),
            ),
        ),
        "lecture_hall": RoomType(
            "lecture_hall",
            "Lecture Hall",
            _components(
                ("projector", "HD Projector", 2, "AV Equipment"),
                ("microphone", "Wireless Microphone", 4, "AV Equipment"),
                ("speaker", "Speaker", 8, "AV Equipment"),
                ("amplifier", "Audio Amplifier", 2, "AV Equipment"),
                ("screen", "Projection Screen", 2, "AV Equipment"),
                ("podium", "Podium", 1, "Furniture"),
                ("whiteboard", "Whiteboard", 2, "Furniture"),
                ("fan", "Industrial Fan", 12, "HVAC"),
                ("air_conditioner", "Central AC", 4, "HVAC"),
                ("lighting", "LED Light", 30, "Electrical"),
                ("desk", "Student Desk", 100, "Furniture"),
                ("chair", "Chair", 100, "Furniture"),
                ("power_outlet", "Power Outlet", 40, "Electrical"),
            ),
        ),
        "physics_lab": RoomType(
            "physics_lab",
            "Physics Lab",
            _components(
                ("experiment_table", "Experiment Table", 20, "Furniture"),
                ("microscope", "Microscope", 15, "Equipment"),
                ("oscilloscope", "Oscilloscope", 8, "Equipment"),
                ("multimeter", "Digital Multimeter", 20, "Equipment"),
                ("power_supply", "DC Power Supply", 15, "Equipment"),
                ("projector", "Projector", 1, "AV Equipment"),
                ("whiteboard", "Whiteboard", 3, "Furniture"),
                ("fume_hood", "Fume Hood", 4, "Safety"),
                ("fire_extinguisher", "Fire Extinguisher", 3, "Safety"),
                ("emergency_shower", "Emergency Shower", 2, "Safety"),
                ("gas_outlet", "Gas Outlet", 20, "Utilities"),
                ("water_outlet", "Water Outlet", 15, "Utilities"),
                ("exhaust_fan", "Exhaust Fan", 6, "HVAC"),
                ("chair", "Lab Stool", 40, "Furniture"),
                ("lighting", "LED Light", 18, "Electrical"),
            ),
        ),
        "chemistry_lab": RoomType(
            "chemistry_lab",
            "Chemistry Lab",
            _components(
                ("lab_bench", "Lab Bench", 16, "Furniture"),
                ("fume_hood", "Chemical Fume Hood", 6, "Safety"),
                ("gas_burner", "Gas Burner", 20, "Equipment"),
                ("balance", "Analytical Balance", 4, "Equipment"),
                ("ph_meter", "pH Meter", 6, "Equipment"),
                ("centrifuge", "Centrifuge", 3, "Equipment"),
                ("distillation_unit", "Distillation Unit", 8, "Equipment"),
                ("safety_shower", "Safety Shower", 2, "Safety"),
                ("eye_wash_station", "Eye Wash Station", 4, "Safety"),
                ("fire_extinguisher", "Fire Extinguisher", 4, "Safety"),
                ("chemical_storage", "Chemical Storage Cabinet", 8, "Storage"),
                ("gas_outlet", "Gas Outlet", 24, "Utilities"),
                ("water_outlet", "Water Outlet", 20, "Utilities"),
                ("exhaust_fan", "Chemical Exhaust Fan", 8, "HVAC"),
                ("chair", "Lab Stool", 32, "Furniture"),
            ),
        ),
    }
)

# code -> (room type, display name)
NAMED_ROOMS: Mapping[str, tuple[str, str]] = MappingProxyType(
    {
        "B201": ("ai_lab", "AIR Lab"),
        "B202": ("computer_lab", "SCPS Lab"),
        "B203": ("computer_lab", "CSE Lab 1"),
        "B301": ("physics_lab", "Physics Lab 1"),
        "B302": ("chemistry_lab", "Chemistry Lab 1"),
        "B401": ("computer_lab", "Advanced Computing Lab"),
        "C101": ("computer_lab", "Programming Lab 1"),
        "C102": ("computer_lab", "Programming Lab 2"),
        "C201": ("ai_lab", "Machine Learning Lab"),
        "C301": ("computer_lab", "Software Engineering Lab"),
        "A101": ("lecture_hall", "Main Auditorium"),
        "A201": ("lecture_hall", "Lecture Hall A"),
        "A301": ("classroom", "Classroom A301"),
        "A401": ("classroom", "Classroom A401"),
        "D101": ("physics_lab", "Electronics Lab"),
        "D201": ("computer_lab", "VLSI Lab"),
        "D301": ("physics_lab", "Communication Lab"),
    }
)


def normalize_room_code(room_code: str) -> str:
    return room_code.strip().upper()


def get_blocks() -> list[Block]:
    return list(BLOCKS.values())


def get_block(block_id: str) -> Block | None:
    return BLOCKS.get(block_id.strip().upper())


def get_room_info(room_code: str) -> RoomInfo:
    """Describe a room; codes with no dedicated entry are treated as plain classrooms."""
    code = normalize_room_code(room_code)
    room_type, name = NAMED_ROOMS.get(code, (DEFAULT_ROOM_TYPE, f"Room {code}"))
    return RoomInfo(code=code, name=name, type=room_type, components=ROOM_TYPES[room_type].components)


def get_rooms_by_block(block_id: str) -> list[RoomInfo]:
    block = get_block(block_id)
    if block is None:
        return []
    return [get_room_info(code) for code in NAMED_ROOMS if code.startswith(block.id)]


def get_components_by_category(room_code: str) -> dict[str, list[Component]]:
    grouped: dict[str, list[Component]] = {}
    for component in get_room_info(room_code).components:
        grouped.setdefault(component.category, []).append(component)
    return grouped


def resolve_components(room_code: str, component_ids: list[str]) -> list[dict]:
    """Map component ids to ``{id, name, category}`` using the room's manifest.

    Ids missing from the manifest are kept with the id doubling as the name so
    a reporter can still flag equipment the catalog does not list.
    """
    manifest = {item.id: item for item in get_room_info(room_code).components}
    resolved: list[dict] = []
    seen: set[str] = set()
    for raw_id in component_ids:
        component_id = raw_id.strip()
        if not component_id or component_id in seen:
            continue
        seen.add(component_id)
        item = manifest.get(component_id)
        if item is None:
            resolved.append({"id": component_id, "name": component_id, "category": "Other"})
        else:
            resolved.append({"id": item.id, "name": item.name, "category": item.category})
    return resolved
