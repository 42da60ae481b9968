"""
Pydantic models shared by the API routers.
"""
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..engine.models import CalculatorInputs


class CalculatorInputsModel(BaseModel):
    """Calculator form values; camelCase names of the web form are accepted."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_price: Optional[Union[float, str]] = None
    competitor_price: Optional[Union[float, str]] = None
    customers: Optional[Union[float, str]] = None
    churn_rate: Optional[Union[float, str]] = None
    cac: Optional[Union[float, str]] = None
    average_contract_length: Optional[Union[float, str]] = None
    expansion_revenue: Optional[Union[float, str]] = None
    market_size: Optional[Union[float, str]] = None

    def to_inputs(self) -> CalculatorInputs:
        return CalculatorInputs(**self.model_dump())
