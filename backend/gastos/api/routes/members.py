"""
Member directory routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from gastos.db.session import get_db
from gastos.schemas.member import MemberCreate, MemberResponse, MemberUpdate
from gastos.services import member_service

router = APIRouter(prefix="/members", tags=["members"])


@router.get("", response_model=List[MemberResponse])
async def list_members(db: Session = Depends(get_db)):
    """List all members."""
    return member_service.list_members(db)


@router.post("", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def create_member(data: MemberCreate, db: Session = Depends(get_db)):
    """Create a member."""
    return member_service.create_member(data, db)


@router.get("/{member_id}", response_model=MemberResponse)
async def get_member(member_id: str, db: Session = Depends(get_db)):
    return member_service.get_member(member_id, db)


@router.patch("/{member_id}", response_model=MemberResponse)
async def update_member(member_id: str, data: MemberUpdate, db: Session = Depends(get_db)):
    return member_service.update_member(member_id, data, db)


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_member(member_id: str, db: Session = Depends(get_db)):
    """Delete a member that belongs to no group."""
    member_service.delete_member(member_id, db)
