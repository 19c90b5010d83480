from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from splitledger.apis.dependencies import get_expense_manager, to_http_exception
from splitledger.schemas.api.common import ApiResponse
from splitledger.schemas.api.settlements import SettlementResponse, SettleUpRequest
from splitledger.services.balance_engine.errors import LedgerError
from splitledger.services.expense_manager import ExpenseManager
from splitledger.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.post("/", response_model=ApiResponse, status_code=201)
async def settle_up(request: SettleUpRequest, manager: ExpenseManager = Depends(get_expense_manager)):
    """
    Record that one user paid off a debt to another.

    Writes a settlement record and an offsetting expense; the pair's balance
    is reduced by **amount** the next time balances are computed.
    """
    try:
        receipt = await manager.settle_up(
            request.from_user,
            request.to_user,
            request.amount,
            request.group_id,
            debtor_name=request.from_name,
            creditor_name=request.to_name,
        )
        response = SettlementResponse.from_settlement(receipt.settlement, expense_id=receipt.expense.id)
        return ApiResponse(data=response.model_dump(by_alias=True), message="Settlement recorded successfully")

    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error settling up {request.from_user} -> {request.to_user}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/groups/{group_id}", response_model=ApiResponse)
async def get_group_settlements(group_id: str, manager: ExpenseManager = Depends(get_expense_manager)):
    """Get the settlement history of a group, newest first."""
    try:
        settlements = await manager.list_settlements(group_id)
        return ApiResponse(
            data=[SettlementResponse.from_settlement(s).model_dump(by_alias=True) for s in settlements],
            pagination={"total": len(settlements)},
        )

    except LedgerError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error getting settlements for group {group_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
