"""
Group management, balance and statistics routes.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from gastos.api.dependencies import get_normalizer
from gastos.db.session import get_db
from gastos.schemas.balance import BalanceSummary
from gastos.schemas.group import GroupCreate, GroupResponse, GroupUpdate
from gastos.services import group_service
from gastos.services.fx_service import CurrencyNormalizer
from gastos.services.settlement_service import get_group_balance_summary
from gastos.services.statistics_service import STATISTIC_TYPES, get_group_statistics

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("", response_model=List[GroupResponse])
async def list_groups(db: Session = Depends(get_db)):
    """List all groups."""
    return [group_service.to_group_response(g) for g in group_service.list_groups(db)]


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(data: GroupCreate, db: Session = Depends(get_db)):
    """Create a group. All members must already exist."""
    return group_service.to_group_response(group_service.create_group(data, db))


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(group_id: str, db: Session = Depends(get_db)):
    return group_service.to_group_response(group_service.get_group(group_id, db))


@router.patch("/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: str,
    data: GroupUpdate,
    db: Session = Depends(get_db),
    normalizer: CurrencyNormalizer = Depends(get_normalizer)
):
    """Update a group. Changing base_currency renormalizes its expenses."""
    group = group_service.update_group(group_id, data, db, normalizer)
    return group_service.to_group_response(group)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(group_id: str, db: Session = Depends(get_db)):
    group_service.delete_group(group_id, db)


@router.get("/{group_id}/balance", response_model=BalanceSummary)
async def get_group_balance(group_id: str, db: Session = Depends(get_db)):
    """
    Balance information and settlement suggestions for a group.
    Response: { balances: Balance[], settlements: Settlement[] }
    """
    return get_group_balance_summary(group_id, db)


@router.get("/{group_id}/statistics")
async def get_group_statistics_route(
    group_id: str,
    type: Optional[str] = None,
    start: Optional[int] = Query(default=None, description="Lower bound, epoch millis"),
    end: Optional[int] = Query(default=None, description="Upper bound, epoch millis"),
    db: Session = Depends(get_db)
):
    """
    Statistics for a group based on the type parameter:
    person, category, month, total or summary.
    """
    if type not in STATISTIC_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid statistic type. Use: {', '.join(STATISTIC_TYPES)}"
        )
    return get_group_statistics(group_id, type, db, start_millis=start, end_millis=end)
