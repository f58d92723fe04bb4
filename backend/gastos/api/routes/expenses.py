"""
Expense management routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from gastos.api.dependencies import get_normalizer
from gastos.db.session import get_db
from gastos.schemas.expense import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from gastos.services import expense_service
from gastos.services.fx_service import CurrencyNormalizer

router = APIRouter(prefix="/groups/{group_id}/expenses", tags=["expenses"])


@router.get("", response_model=List[ExpenseResponse])
async def list_expenses(group_id: str, db: Session = Depends(get_db)):
    """Get all expenses of a group, oldest first."""
    return [
        expense_service.to_expense_response(e)
        for e in expense_service.list_expenses(group_id, db)
    ]


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    group_id: str,
    data: ExpenseCreate,
    db: Session = Depends(get_db),
    normalizer: CurrencyNormalizer = Depends(get_normalizer)
):
    """Create an expense; the amount is normalized into the group's base currency."""
    expense = expense_service.create_expense(group_id, data, db, normalizer)
    return expense_service.to_expense_response(expense)


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(group_id: str, expense_id: str, db: Session = Depends(get_db)):
    return expense_service.to_expense_response(
        expense_service.get_expense(group_id, expense_id, db)
    )


@router.patch("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    group_id: str,
    expense_id: str,
    data: ExpenseUpdate,
    db: Session = Depends(get_db),
    normalizer: CurrencyNormalizer = Depends(get_normalizer)
):
    """Update an expense."""
    expense = expense_service.update_expense(group_id, expense_id, data, db, normalizer)
    return expense_service.to_expense_response(expense)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(group_id: str, expense_id: str, db: Session = Depends(get_db)):
    expense_service.delete_expense(group_id, expense_id, db)
