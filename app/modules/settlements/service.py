from supabase import Client
from app.core import money
from app.core.dependencies import is_group_member
from app.modules.balances.service import BalanceService
from app.modules.settlements.schemas import SettlementCreate, SettlementResponse
from typing import List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class SettlementService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.balances = BalanceService(supabase)

    def _to_response(self, row: dict) -> SettlementResponse:
        return SettlementResponse(**{**row, "amount": money.quantize(row["amount"])})

    def settle_up(self, settlement_data: SettlementCreate, payer_id: str) -> SettlementResponse:
        """Record a payment from payer to payee; amount defaults to what payer currently owes"""
        try:
            payee_id = settlement_data.payee_id
            if payee_id == payer_id:
                raise HTTPException(status_code=400, detail="You cannot settle up with yourself")
            payee = self.supabase.table("users").select("id").eq("id", payee_id).limit(1).execute()
            if not payee.data:
                raise HTTPException(status_code=404, detail="User not found")
            if settlement_data.group_id and not is_group_member(settlement_data.group_id, payee_id, self.supabase):
                raise HTTPException(status_code=400, detail="Payee is not a member of this group")

            amount = settlement_data.amount
            if amount is None:
                # Negative pairwise balance means the payer owes the payee
                owed = -self.balances.get_pairwise_balance(payer_id, payee_id, settlement_data.group_id)
                if owed <= 0:
                    raise HTTPException(status_code=400, detail="You do not owe this user anything")
                amount = owed
            amount = money.quantize(amount)
            if amount <= 0:
                raise HTTPException(status_code=400, detail="Please enter a valid amount")

            result = self.supabase.table("settlements").insert({
                "payer_id": payer_id,
                "payee_id": payee_id,
                "amount": str(amount),
                "method": settlement_data.method,
                "group_id": settlement_data.group_id,
                "note": settlement_data.note,
                "created_by": payer_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to record settlement")

            logger.info(f"Settlement {result.data[0]['id']}: {payer_id} paid {payee_id} {amount} via {settlement_data.method}")
            return self._to_response(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error recording settlement: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_settlements(self, user_id: str, group_id: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[SettlementResponse]:
        """Settlements where the user paid or was paid, newest first"""
        try:
            query = self.supabase.table("settlements")\
                .select("*")\
                .or_(f"payer_id.eq.{user_id},payee_id.eq.{user_id}")
            if group_id:
                query = query.eq("group_id", group_id)
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [self._to_response(s) for s in result.data or []]
        except Exception as e:
            logger.error(f"Error listing settlements for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_settlement(self, settlement_id: str, user_id: str) -> bool:
        """Undo a settlement; only whoever recorded it may"""
        try:
            existing = self.supabase.table("settlements")\
                .select("id, created_by")\
                .eq("id", settlement_id)\
                .limit(1)\
                .execute()
            if not existing.data:
                raise HTTPException(status_code=404, detail="Settlement not found")
            if existing.data[0]["created_by"] != user_id:
                raise HTTPException(status_code=403, detail="Only the person who recorded a settlement can undo it")
            result = self.supabase.table("settlements")\
                .delete()\
                .eq("id", settlement_id)\
                .execute()
            logger.info(f"Settlement {settlement_id} undone by {user_id}")
            return len(result.data) > 0
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting settlement {settlement_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
