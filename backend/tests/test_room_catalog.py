import pytest

from campusdesk.services.room_catalog import (
    BLOCKS,
    get_block,
    get_blocks,
    get_components_by_category,
    get_room_info,
    get_rooms_by_block,
    resolve_components,
)


def test_blocks_listed_in_order():
    assert [block.id for block in get_blocks()] == ["A", "B", "C", "D", "E"]
    assert get_block("c").name == "C Block"
    assert get_block("Z") is None


def test_catalog_is_read_only():
    with pytest.raises(TypeError):
        BLOCKS["F"] = BLOCKS["A"]


def test_named_room_lookup_is_case_insensitive():
    room = get_room_info(" b201 ")
    assert room.code == "B201"
    assert room.name == "AIR Lab"
    assert room.type == "ai_lab"
    assert room.floor == 2


def test_unknown_room_defaults_to_classroom():
    room = get_room_info("e105")
    assert room.name == "Room E105"
    assert room.type == "classroom"
    assert any(item.id == "projector" for item in room.components)


def test_rooms_by_block():
    codes = [room.code for room in get_rooms_by_block("a")]
    assert codes == ["A101", "A201", "A301", "A401"]
    assert get_rooms_by_block("E") == []
    assert get_rooms_by_block("Q") == []


def test_components_grouped_in_manifest_order():
    grouped = get_components_by_category("A301")
    assert list(grouped) == ["AV Equipment", "Furniture", "HVAC", "Electrical"]
    assert [item.id for item in grouped["Furniture"]] == ["whiteboard", "desk", "chair", "teacher_desk"]


def test_resolve_components_dedupes_and_keeps_unknown():
    resolved = resolve_components("B202", ["mouse", " mouse", "", "coffee_machine"])
    assert resolved == [
        {"id": "mouse", "name": "Mouse", "category": "Hardware"},
        {"id": "coffee_machine", "name": "coffee_machine", "category": "Other"},
    ]


def test_room_endpoints_require_login(client, student_headers):
    assert client.get("/api/rooms/blocks").status_code == 401

    blocks = client.get("/api/rooms/blocks", headers=student_headers)
    assert len(blocks.json()["data"]["blocks"]) == 5

    missing = client.get("/api/rooms/blocks/Z", headers=student_headers)
    assert missing.status_code == 404

    rooms = client.get("/api/rooms/blocks/c/rooms", headers=student_headers)
    assert [room["code"] for room in rooms.json()["data"]["rooms"]] == ["C101", "C102", "C201", "C301"]

    detail = client.get("/api/rooms/c201", headers=student_headers).json()["data"]["room"]
    assert detail["name"] == "Machine Learning Lab"
    assert detail["floor"] == 2

    components = client.get("/api/rooms/C201/components", headers=student_headers).json()["data"]
    assert components["roomCode"] == "C201"
    assert "Hardware" in components["componentsByCategory"]
