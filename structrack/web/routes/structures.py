"""Structure inventory routes.

Routes:
- GET    /api/structures/tree                  - Assembled structure tree
- GET    /api/structure-types                  - List structure types
- POST   /api/structure-types                  - Create a structure type
- DELETE /api/structure-types/{type_id}        - Delete an unused type
- POST   /api/structures                       - Create a structure
- DELETE /api/structures/{structure_id}        - Delete a structure (cascading)
- POST   /api/groups                           - Create a group (+ legacy sync)
- DELETE /api/groups/{group_id}                - Delete a group (cascading)
- POST   /api/groups/{group_id}/resync         - Repair legacy tracking
- POST   /api/groups/{group_id}/elements/bulk  - Pasted coordinate import
- POST   /api/elements                         - Create an element + coordinates
- DELETE /api/elements/{element_id}            - Delete an element
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from structrack.inventory.models import (
    Structure,
    StructureElement,
    StructureGroup,
    StructureTreeItem,
    StructureType,
)
from structrack.service import StructureManager
from structrack.web.dependencies import get_manager
from structrack.web.models import (
    BulkImportRequest,
    BulkImportResponse,
    ElementCreate,
    WriteResponse,
)

router = APIRouter(prefix="/api", tags=["structures"])


@router.get("/structures/tree", response_model=list[StructureTreeItem])
async def get_tree(refresh: bool = False, manager: StructureManager = Depends(get_manager)):
    return await manager.get_tree(refresh=refresh)


@router.get("/structure-types", response_model=list[StructureType])
async def list_structure_types(manager: StructureManager = Depends(get_manager)):
    return await manager.list_structure_types()


@router.post("/structure-types", status_code=status.HTTP_201_CREATED)
async def create_structure_type(
    payload: StructureType, manager: StructureManager = Depends(get_manager)
) -> WriteResponse:
    return WriteResponse.from_result(await manager.add_structure_type(payload))


@router.delete("/structure-types/{type_id}")
async def delete_structure_type(
    type_id: str, manager: StructureManager = Depends(get_manager)
) -> WriteResponse:
    return WriteResponse.from_result(await manager.delete_structure_type(type_id))


@router.post("/structures", status_code=status.HTTP_201_CREATED)
async def create_structure(
    payload: Structure, manager: StructureManager = Depends(get_manager)
) -> WriteResponse:
    return WriteResponse.from_result(await manager.add_structure(payload))


@router.delete("/structures/{structure_id}")
async def delete_structure(
    structure_id: str, manager: StructureManager = Depends(get_manager)
) -> WriteResponse:
    return WriteResponse.from_result(await manager.delete_structure(structure_id))


@router.post("/groups", status_code=status.HTTP_201_CREATED)
async def create_group(
    payload: StructureGroup, manager: StructureManager = Depends(get_manager)
) -> WriteResponse:
    """Create a group. A failed legacy sync still returns 201 with
    status PARTIAL_SUCCESS and the failing step in ``sync``."""
    return WriteResponse.from_result(await manager.add_group(payload))


@router.delete("/groups/{group_id}")
async def delete_group(
    group_id: str, manager: StructureManager = Depends(get_manager)
) -> WriteResponse:
    return WriteResponse.from_result(await manager.delete_group(group_id))


@router.post("/groups/{group_id}/resync")
async def resync_group(
    group_id: str, manager: StructureManager = Depends(get_manager)
) -> WriteResponse:
    return WriteResponse.from_result(await manager.resync_group(group_id))


@router.post("/groups/{group_id}/elements/bulk")
async def import_elements(
    group_id: str,
    payload: BulkImportRequest,
    manager: StructureManager = Depends(get_manager),
) -> BulkImportResponse:
    return BulkImportResponse.from_import(await manager.import_bulk(group_id, payload.text))


@router.post("/elements", status_code=status.HTTP_201_CREATED)
async def create_element(
    payload: ElementCreate, manager: StructureManager = Depends(get_manager)
) -> WriteResponse:
    element = StructureElement(
        group_id=payload.group_id, name=payload.name, element_class=payload.element_class
    )
    return WriteResponse.from_result(await manager.add_element(element, payload.coordinates))


@router.delete("/elements/{element_id}")
async def delete_element(
    element_id: str, manager: StructureManager = Depends(get_manager)
) -> WriteResponse:
    return WriteResponse.from_result(await manager.delete_element(element_id))
