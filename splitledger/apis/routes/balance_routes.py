"""
FastAPI routes for net balances.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from splitledger.apis.dependencies import get_expense_manager, to_http_exception
from splitledger.schemas.api.balances import BalanceListResponse
from splitledger.schemas.api.common import ApiResponse
from splitledger.schemas.ledger import PERSONAL_SCOPE, BalanceScope
from splitledger.services.balance_engine.aggregator import (
    balance_entries,
    compute_balances,
    total_spent,
)
from splitledger.services.balance_engine.errors import LedgerError
from splitledger.services.expense_manager import ExpenseManager
from splitledger.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/balances", tags=["balances"])


async def _scope_balances(manager: ExpenseManager, scope: BalanceScope, viewer_id: Optional[str]) -> BalanceListResponse:
    expenses = await manager.list_expenses(scope, viewer_id)
    balances = compute_balances(expenses, scope, viewer_id, manager.tolerance)
    return BalanceListResponse(
        scope=scope or PERSONAL_SCOPE,
        viewer_id=viewer_id,
        balances=balance_entries(balances),
        total_spent=total_spent(expenses),
        expense_count=len(expenses),
    )


@router.get("/groups/{group_id}", response_model=ApiResponse)
async def get_group_balances(
    group_id: str,
    viewer_id: Optional[str] = Query(None, description="Only return balances involving this user"),
    manager: ExpenseManager = Depends(get_expense_manager),
):
    """Get the net balances between the members of a group."""
    try:
        response = await _scope_balances(manager, group_id, viewer_id)
        if viewer_id:
            response.balances = [
                entry for entry in response.balances
                if viewer_id in (entry.debtor, entry.creditor)
            ]
        return ApiResponse(data=response.model_dump())

    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error getting balances for group {group_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/personal", response_model=ApiResponse)
async def get_personal_balances(
    viewer_id: str = Query(..., description="User whose personal balances are requested"),
    manager: ExpenseManager = Depends(get_expense_manager),
):
    """Get the viewer's net balances from expenses outside any group."""
    try:
        response = await _scope_balances(manager, PERSONAL_SCOPE, viewer_id)
        return ApiResponse(data=response.model_dump())

    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error getting personal balances for {viewer_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/summary", response_model=ApiResponse)
async def get_balance_summary(
    viewer_id: str = Query(..., description="User the summary is computed for"),
    group_id: Optional[str] = Query(None, description="Group scope; personal balances when omitted"),
    manager: ExpenseManager = Depends(get_expense_manager),
):
    """Get what the viewer is owed and owes in one scope."""
    try:
        summary = await manager.get_balance_summary(group_id or PERSONAL_SCOPE, viewer_id)
        return ApiResponse(data=summary.model_dump())

    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error getting balance summary for {viewer_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
