"""Dining table API endpoints"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.table import TableCreate, TableResponse, TableStatusUpdate
from app.services.tables import TableService

router = APIRouter()


async def get_table_service(db: AsyncSession = Depends(get_db)) -> TableService:
    return TableService(db)


@router.get("", response_model=List[TableResponse])
async def list_tables(
    include_out_of_service: bool = True,
    service: TableService = Depends(get_table_service),
):
    """List tables by number"""
    return await service.list(include_out_of_service)


@router.post("", response_model=TableResponse, status_code=201)
async def create_table(
    table_data: TableCreate,
    service: TableService = Depends(get_table_service),
):
    return await service.create(table_data)


@router.get("/{table_id}", response_model=TableResponse)
async def get_table(table_id: UUID, service: TableService = Depends(get_table_service)):
    return await service.get(table_id)


@router.patch("/{table_id}/status", response_model=TableResponse)
async def update_table_status(
    table_id: UUID,
    status_data: TableStatusUpdate,
    service: TableService = Depends(get_table_service),
):
    """Put a table into maintenance, block it, or make it available again"""
    return await service.update_status(table_id, status_data)
