"""
Pydantic schemas for provider balances and withdrawals
"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


class BalanceResponse(BaseModel):
    provider_id: int
    balance: float
    available_balance: float
    pending_balance: float
    updated_at: Optional[str] = None


class TransactionResponse(BaseModel):
    id: int
    provider_id: int
    amount: float
    type: str
    status: str
    appointment_id: Optional[int] = None
    withdrawal_id: Optional[int] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class WithdrawalRequest(BaseModel):
    """Provider request to cash out available balance through PIX"""
    amount: float = Field(..., gt=0)
    pix_key: str = Field(..., min_length=1, max_length=140)
    pix_key_type: str = Field(..., pattern=r"^(cpf|cnpj|email|phone|random)$")


class WithdrawalStatusUpdate(BaseModel):
    status: str = Field(..., pattern=r"^(pending|processing|completed|failed)$")
    transaction_id: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class PixInfo(BaseModel):
    pix_key: str
    pix_key_type: str


class ProviderInfo(BaseModel):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class WithdrawalResponse(BaseModel):
    id: int
    provider_id: int
    amount: float
    status: str
    payment_method: str
    pix_info: PixInfo
    provider_info: ProviderInfo
    requested_at: Optional[str] = None
    processed_at: Optional[str] = None
    transaction_id: Optional[str] = None
    notes: Optional[str] = None


class WithdrawalListResponse(BaseModel):
    withdrawals: List[WithdrawalResponse]
    total: int
    page: int
    limit: int
    total_pages: int
