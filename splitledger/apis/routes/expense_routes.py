"""
FastAPI routes for expense management.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from splitledger.apis.dependencies import get_expense_manager, to_http_exception
from splitledger.schemas.api.common import ApiResponse
from splitledger.schemas.api.expenses import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from splitledger.schemas.ledger import PERSONAL_SCOPE, Expense
from splitledger.services.balance_engine.errors import LedgerError
from splitledger.services.balance_engine.split_resolver import resolve_shares
from splitledger.services.expense_manager import ExpenseManager
from splitledger.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/expenses", tags=["expenses"])


def _to_response(expense: Expense) -> dict:
    return ExpenseResponse.from_expense(expense, resolve_shares(expense)).model_dump()


@router.get("/", response_model=ApiResponse)
async def list_expenses(
    group_id: Optional[str] = Query(None, description="Group to list; personal expenses when omitted"),
    viewer_id: Optional[str] = Query(None, description="Viewing user, required for personal expenses"),
    manager: ExpenseManager = Depends(get_expense_manager),
):
    """List the expenses of a group, or the viewer's personal expenses."""
    if group_id is None and not viewer_id:
        raise HTTPException(status_code=400, detail="viewer_id is required for personal expenses")

    try:
        expenses = await manager.list_expenses(group_id or PERSONAL_SCOPE, viewer_id)
        return ApiResponse(
            data=[_to_response(expense) for expense in expenses],
            pagination={"total": len(expenses)},
        )

    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to list expenses: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{expense_id}", response_model=ApiResponse)
async def get_expense(expense_id: str, manager: ExpenseManager = Depends(get_expense_manager)):
    """Get a single expense by ID."""
    try:
        expense = await manager.get_expense(expense_id)
        return ApiResponse(data=_to_response(expense))

    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to get expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/", response_model=ApiResponse, status_code=201)
async def create_expense(expense_data: ExpenseCreate, manager: ExpenseManager = Depends(get_expense_manager)):
    """
    Create a new expense.

    - **split_amounts**: custom split; every participant needs a positive
      amount and the amounts must add up to **amount**
    """
    try:
        expense = await manager.create_expense(**expense_data.model_dump())
        return ApiResponse(data=_to_response(expense), message="Expense created successfully")

    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to create expense: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{expense_id}", response_model=ApiResponse)
async def update_expense(
    expense_id: str,
    updates: ExpenseUpdate,
    manager: ExpenseManager = Depends(get_expense_manager),
):
    """Update an expense. Settlement expenses cannot be edited."""
    try:
        expense = await manager.update_expense(expense_id, **updates.model_dump(exclude_unset=True))
        return ApiResponse(data=_to_response(expense), message="Expense updated successfully")

    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to update expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{expense_id}", status_code=204)
async def delete_expense(expense_id: str, manager: ExpenseManager = Depends(get_expense_manager)):
    """Delete an expense."""
    try:
        await manager.delete_expense(expense_id)

    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to delete expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
