from fastapi import APIRouter, Depends

from campusdesk.api.deps import get_current_user
from campusdesk.api.responses import success
from campusdesk.core.exceptions import ResourceNotFoundError
from campusdesk.models.user import User
from campusdesk.schemas.room import BlockOut, ComponentOut, RoomComponentsOut, RoomOut
from campusdesk.services.room_catalog import (
    RoomInfo,
    get_block,
    get_blocks,
    get_components_by_category,
    get_room_info,
    get_rooms_by_block,
)

router = APIRouter()


def _room_out(room: RoomInfo) -> RoomOut:
    return RoomOut(
        code=room.code,
        name=room.name,
        type=room.type,
        floor=room.floor,
        components=[ComponentOut.model_validate(item) for item in room.components],
    )


def _block_or_404(block_id: str):
    block = get_block(block_id)
    if block is None:
        raise ResourceNotFoundError("Block")
    return block


@router.get("/blocks")
def list_blocks(current_user: User = Depends(get_current_user)) -> dict:
    return success({"blocks": [BlockOut.model_validate(item) for item in get_blocks()]})


@router.get("/blocks/{block_id}")
def get_block_detail(block_id: str, current_user: User = Depends(get_current_user)) -> dict:
    return success({"block": BlockOut.model_validate(_block_or_404(block_id))})


@router.get("/blocks/{block_id}/rooms")
def list_block_rooms(block_id: str, current_user: User = Depends(get_current_user)) -> dict:
    block = _block_or_404(block_id)
    return success({"block": BlockOut.model_validate(block), "rooms": [_room_out(room) for room in get_rooms_by_block(block.id)]})


@router.get("/{room_code}")
def get_room(room_code: str, current_user: User = Depends(get_current_user)) -> dict:
    return success({"room": _room_out(get_room_info(room_code))})


@router.get("/{room_code}/components")
def get_room_components(room_code: str, current_user: User = Depends(get_current_user)) -> dict:
    room = get_room_info(room_code)
    grouped = get_components_by_category(room.code)
    payload = RoomComponentsOut(
        components=[ComponentOut.model_validate(item) for item in room.components],
        components_by_category={
            category: [ComponentOut.model_validate(item) for item in items] for category, items in grouped.items()
        },
    )
    return success({"roomCode": room.code, "roomName": room.name, **payload.model_dump(by_alias=True)})
