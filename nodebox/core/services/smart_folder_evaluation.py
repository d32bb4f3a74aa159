"""
Smart folder evaluation.

Reducers registry and the evaluation result returned by
NodeService.evaluate().
"""
from dataclasses import dataclass, field
from statistics import median
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..exceptions import AggregationFormulaError
from ..nodes import Aggregation, Node
from ..nodes.filters import get_field

Reducer = Callable[[List[Node], str], Any]


def _numbers(nodes: List[Node], field_name: str) -> List[float]:
    values = []
    for node in nodes:
        value = get_field(node.to_dict(), field_name)
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            values.append(value)
    return values


def _sum(nodes: List[Node], field_name: str) -> Any:
    return sum(_numbers(nodes, field_name))


def _count(nodes: List[Node], field_name: str) -> Any:
    return len(nodes)


def _avg(nodes: List[Node], field_name: str) -> Any:
    values = _numbers(nodes, field_name)
    return sum(values) / len(values) if values else 0


def _med(nodes: List[Node], field_name: str) -> Any:
    values = _numbers(nodes, field_name)
    return median(values) if values else 0


def _max(nodes: List[Node], field_name: str) -> Any:
    values = _numbers(nodes, field_name)
    return max(values) if values else None


def _min(nodes: List[Node], field_name: str) -> Any:
    values = _numbers(nodes, field_name)
    return min(values) if values else None


REDUCERS: Dict[str, Reducer] = {
    'sum': _sum,
    'count': _count,
    'avg': _avg,
    'med': _med,
    'max': _max,
    'min': _min,
}


@dataclass
class AggregationResult:
    title: str
    value: Any


@dataclass
class SmartFolderNodeEvaluation:
    """Nodes matched by a smart folder plus its computed aggregations."""
    records: List[Node] = field(default_factory=list)
    aggregations: Optional[List[AggregationResult]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'records': [n.to_dict() for n in self.records]}
        if self.aggregations is not None:
            data['aggregations'] = [
                {'title': a.title, 'value': a.value} for a in self.aggregations
            ]
        return data


def compute_aggregations(
    nodes: List[Node],
    aggregations: Sequence[Aggregation]
) -> List[AggregationResult]:
    """
    Apply each aggregation's reducer across nodes.

    Every formula is resolved before anything is computed.

    Raises:
        AggregationFormulaError: If a formula is not registered
    """
    reducers = []
    for aggregation in aggregations:
        reducer = REDUCERS.get(aggregation.formula)
        if reducer is None:
            raise AggregationFormulaError(aggregation.formula)
        reducers.append(reducer)

    return [
        AggregationResult(title=aggregation.title, value=reducer(nodes, aggregation.field_name))
        for aggregation, reducer in zip(aggregations, reducers)
    ]
