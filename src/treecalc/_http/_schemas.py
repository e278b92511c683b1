"""Request and response bodies of the HTTP API.

Field names are camelCase on the wire (`parentId`, `calculatedValue`).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from treecalc._models import Calculation, CalculationInput, CalculationResult, Variable


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateResourceRequest(_Schema):
    name: str
    parent_id: int | None = None


class CreateResourceResponse(_Schema):
    id: int


class LineageResponse(_Schema):
    lineage: list[int]


class ReparentRequest(_Schema):
    parent_id: int


class VariableSchema(_Schema):
    id: int
    name: str
    value: float

    @classmethod
    def from_variable(cls, variable: Variable) -> VariableSchema:
        return cls(id=variable.id, name=variable.name, value=variable.value)


class UpdateVariableRequest(_Schema):
    variable_id: int
    value: float


class CalculationSchema(_Schema):
    id: int
    name: str
    expression: str
    calculated_value: float | None = None

    @classmethod
    def from_calculation(cls, calculation: Calculation) -> CalculationSchema:
        return cls(
            id=calculation.id,
            name=calculation.name,
            expression=calculation.expression,
            calculated_value=calculation.calculated_value,
        )


class CalculationResultSchema(_Schema):
    id: int | None
    name: str
    expression: str
    calculated_value: float

    @classmethod
    def from_result(cls, result: CalculationResult) -> CalculationResultSchema:
        return cls(
            id=result.id,
            name=result.name,
            expression=result.expression,
            calculated_value=result.calculated_value,
        )


class VariableUpdateResponse(_Schema):
    variable: VariableSchema
    recalculated: list[CalculationResultSchema]


class CreateCalculationRequest(_Schema):
    name: str
    expression: str


class UpdateExpressionRequest(_Schema):
    expression: str


class TransientCalculation(_Schema):
    id: int | None = None
    name: str
    expression: str

    def to_input(self) -> CalculationInput:
        return CalculationInput(name=self.name, expression=self.expression, id=self.id)


class EvaluateCalculationRequest(_Schema):
    calculation: TransientCalculation


class ErrorResponse(_Schema):
    error: str
    detail: str
