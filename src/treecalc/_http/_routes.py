"""HTTP routes. Handlers only translate between wire bodies and core operations."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse

from treecalc._recalc import RecalculationCoordinator
from treecalc._tree import ResourceTree

from ._schemas import (
    CalculationResultSchema,
    CalculationSchema,
    CreateCalculationRequest,
    CreateResourceRequest,
    CreateResourceResponse,
    ErrorResponse,
    EvaluateCalculationRequest,
    LineageResponse,
    ReparentRequest,
    UpdateExpressionRequest,
    UpdateVariableRequest,
    VariableSchema,
    VariableUpdateResponse,
)

WELCOME_MESSAGE = "Welcome to the Procurified ResourceLineage APIs!"

_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def get_tree(request: Request) -> ResourceTree:
    return request.app.state.tree


def get_coordinator(request: Request) -> RecalculationCoordinator:
    return request.app.state.coordinator


TreeDep = Annotated[ResourceTree, Depends(get_tree)]
CoordinatorDep = Annotated[RecalculationCoordinator, Depends(get_coordinator)]


# --- Expressions and calculations ---

expressions_router = APIRouter(responses=_ERROR_RESPONSES)


@expressions_router.get("/expressions/{calculation_id}", response_model=CalculationResultSchema)
def process_calculation(calculation_id: int, coordinator: CoordinatorDep) -> CalculationResultSchema:
    """Evaluate a stored calculation and persist its value."""
    return CalculationResultSchema.from_result(coordinator.process_calculation_by_id(calculation_id))


@expressions_router.put("/expressions/{variable_id}", response_model=list[CalculationResultSchema])
def recalculate_for_variable(variable_id: int, coordinator: CoordinatorDep) -> list[CalculationResultSchema]:
    """Recompute every calculation that references the variable."""
    results = coordinator.recalculate_for_variable(variable_id)
    return [CalculationResultSchema.from_result(result) for result in results]


@expressions_router.post("/expressions", response_model=VariableUpdateResponse)
def update_variable_value(body: UpdateVariableRequest, coordinator: CoordinatorDep) -> VariableUpdateResponse:
    """Set a variable's value and recompute its dependent calculations."""
    update = coordinator.update_variable(body.variable_id, body.value)
    return VariableUpdateResponse(
        variable=VariableSchema.from_variable(update.variable),
        recalculated=[CalculationResultSchema.from_result(result) for result in update.recalculated],
    )


@expressions_router.post(
    "/calculations",
    response_model=CalculationSchema,
    status_code=status.HTTP_201_CREATED,
)
def create_calculation(body: CreateCalculationRequest, coordinator: CoordinatorDep) -> CalculationSchema:
    return CalculationSchema.from_calculation(coordinator.create_calculation(body.name, body.expression))


@expressions_router.post("/calculations/evaluate", response_model=CalculationResultSchema)
def evaluate_calculation(body: EvaluateCalculationRequest, coordinator: CoordinatorDep) -> CalculationResultSchema:
    """Evaluate a calculation given in the request body."""
    return CalculationResultSchema.from_result(coordinator.process_calculation(body.calculation.to_input()))


@expressions_router.put("/calculations/{calculation_id}", response_model=CalculationSchema)
def update_expression(
    calculation_id: int,
    body: UpdateExpressionRequest,
    coordinator: CoordinatorDep,
) -> CalculationSchema:
    return CalculationSchema.from_calculation(coordinator.update_expression(calculation_id, body.expression))


# --- Resources ---

resources_router = APIRouter(responses=_ERROR_RESPONSES)


@resources_router.get("/", response_class=PlainTextResponse)
def get_index() -> str:
    return WELCOME_MESSAGE


@resources_router.post("/", response_model=CreateResourceResponse)
def create_resource(body: CreateResourceRequest, tree: TreeDep) -> CreateResourceResponse:
    """Create a resource, optionally under an existing parent."""
    return CreateResourceResponse(id=tree.create_resource(body.name, body.parent_id))


@resources_router.get("/{resource_id}", response_model=LineageResponse)
def get_resource_lineage(resource_id: int, tree: TreeDep) -> LineageResponse:
    """Ancestor ids of a resource, root first."""
    return LineageResponse(lineage=tree.get_lineage(resource_id))


@resources_router.put("/{resource_id}", response_class=PlainTextResponse)
def update_resource_parent(resource_id: int, body: ReparentRequest, tree: TreeDep) -> str:
    tree.reparent(resource_id, body.parent_id)
    return "Resource parent updated successfully"
