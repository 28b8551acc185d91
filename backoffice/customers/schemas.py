from pydantic import BaseModel


class CustomerCreditOut(BaseModel):
    customer_id: str
    available_credit: float
