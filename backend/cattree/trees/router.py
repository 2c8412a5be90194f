"""FastAPI routes for single-category edits and the outline view."""

from fastapi import APIRouter, Depends

from cattree.models import TreeResult
from cattree.trees.renderer import TreeRenderer
from cattree.trees.schemas import (
    AddChildRequest,
    AddRootRequest,
    ExistsResponse,
    TreeViewResponse,
)
from cattree.trees.service import TreeService

router = APIRouter(prefix="/api/owners", tags=["categories"])


def get_tree_service() -> TreeService:
    """Dependency placeholder — replaced at app startup."""
    raise RuntimeError("TreeService not initialized")


def get_tree_renderer() -> TreeRenderer:
    """Dependency placeholder — replaced at app startup."""
    raise RuntimeError("TreeRenderer not initialized")


@router.post("/{owner}/categories")
async def add_root(
    owner: str,
    request: AddRootRequest,
    service: TreeService = Depends(get_tree_service),
) -> TreeResult:
    return await service.add_root(request.name, owner)


@router.post("/{owner}/categories/children")
async def add_child(
    owner: str,
    request: AddChildRequest,
    service: TreeService = Depends(get_tree_service),
) -> TreeResult:
    return await service.add_child(request.words(), owner)


@router.get("/{owner}/categories/tree")
async def view_tree(
    owner: str,
    renderer: TreeRenderer = Depends(get_tree_renderer),
) -> TreeViewResponse:
    return TreeViewResponse(text=await renderer.render(owner))


@router.get("/{owner}/categories/{name}/exists")
async def category_exists(
    owner: str,
    name: str,
    service: TreeService = Depends(get_tree_service),
) -> ExistsResponse:
    return ExistsResponse(name=name, exists=await service.exists(name, owner))


@router.delete("/{owner}/categories/{name}")
async def remove_category(
    owner: str,
    name: str,
    service: TreeService = Depends(get_tree_service),
) -> TreeResult:
    return await service.remove_subtree(name, owner)
