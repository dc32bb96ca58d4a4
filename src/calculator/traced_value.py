"""
Traced-value graph for "explain this number".

Every amount the engine computes is recorded as a ``TracedValue`` node that
names the node ids it was computed from. Nodes are recorded through an
explicit ``TraceGraphBuilder`` threaded through one computation:

- a node id is write-once
- every input id must already be recorded

so the finished graph is a DAG by construction. ``freeze()`` returns an
immutable ``TraceGraph`` that can render a derivation trail for any node.

Node ids are dotted paths: ``form1040.line11``, ``w2.acme.box1``,
``form540.caAGI``. State modules record through a namespaced view so their
local ids are prefixed with the state form name.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from calculator.decimal_math import Cents, format_money

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    DOCUMENT = "document"
    USER_ENTRY = "user_entry"
    COMPUTED = "computed"


class TraceGraphError(ValueError):
    """Raised when a node would break the write-once or inputs-first rules."""


@dataclass(frozen=True)
class TracedValue:
    """One node in the explanation graph."""
    node_id: str
    amount: Cents
    label: str
    source_kind: SourceKind = SourceKind.COMPUTED
    inputs: Tuple[str, ...] = ()
    irs_citation: Optional[str] = None
    document_ref: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "node_id": self.node_id,
            "amount": self.amount,
            "label": self.label,
            "source_kind": self.source_kind.value,
            "inputs": list(self.inputs),
            "irs_citation": self.irs_citation,
            "document_ref": self.document_ref,
        }


@dataclass
class TraceNode:
    """Expanded derivation tree rooted at one node."""
    node_id: str
    label: str
    amount: Cents
    source_kind: SourceKind
    irs_citation: Optional[str] = None
    children: List["TraceNode"] = field(default_factory=list)


# Human labels for federal node ids. Modules may pass an explicit label instead.
NODE_LABELS: Dict[str, str] = {
    "form1040.line1a": "Wages from W-2 box 1",
    "form1040.line1z": "Total wages",
    "form1040.line2a": "Tax-exempt interest",
    "form1040.line2b": "Taxable interest",
    "form1040.line3a": "Qualified dividends",
    "form1040.line3b": "Ordinary dividends",
    "form1040.line4a": "IRA distributions",
    "form1040.line4b": "Taxable IRA distributions",
    "form1040.line5a": "Pensions and annuities",
    "form1040.line5b": "Taxable pensions and annuities",
    "form1040.line6a": "Social Security benefits",
    "form1040.line6b": "Taxable Social Security benefits",
    "form1040.line7": "Capital gain or (loss)",
    "form1040.line8": "Additional income from Schedule 1",
    "form1040.line9": "Total income",
    "form1040.line10": "Adjustments to income",
    "form1040.line11": "Adjusted gross income",
    "form1040.line12": "Standard or itemized deduction",
    "form1040.line13": "Qualified business income deduction",
    "form1040.line14": "Total deductions",
    "form1040.line15": "Taxable income",
    "form1040.line16": "Tax",
    "form1040.line17": "Amount from Schedule 2, line 3",
    "form1040.line18": "Tax plus Schedule 2",
    "form1040.line19": "Child tax credit / credit for other dependents",
    "form1040.line20": "Amount from Schedule 3, line 8",
    "form1040.line21": "Total nonrefundable credits",
    "form1040.line22": "Tax after nonrefundable credits",
    "form1040.line23": "Other taxes (Schedule 2, line 21)",
    "form1040.line24": "Total tax",
    "form1040.line25a": "Withholding from Forms W-2",
    "form1040.line25b": "Withholding from Forms 1099",
    "form1040.line25c": "Other withholding (Form 8959)",
    "form1040.line25d": "Total federal income tax withheld",
    "form1040.line26": "Estimated tax payments",
    "form1040.line27": "Earned income credit",
    "form1040.line28": "Additional child tax credit",
    "form1040.line29": "American opportunity credit",
    "form1040.line31": "Amount from Schedule 3, line 15",
    "form1040.line32": "Total other payments and refundable credits",
    "form1040.line33": "Total payments",
    "form1040.line34": "Overpaid",
    "form1040.line37": "Amount you owe",
}


class TraceGraphBuilder:
    """
    Accumulates traced values for one computation.

    Create a fresh builder per run; never share one across returns.
    """

    def __init__(self, labels: Optional[Mapping[str, str]] = None, debug_logging: bool = False):
        self._nodes: Dict[str, TracedValue] = {}
        self._labels: Dict[str, str] = dict(NODE_LABELS)
        if labels:
            self._labels.update(labels)
        self._debug_logging = debug_logging

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, node_id: str) -> TracedValue:
        return self._nodes[node_id]

    def amount(self, node_id: str) -> Cents:
        return self._nodes[node_id].amount

    def add_labels(self, labels: Mapping[str, str]) -> None:
        self._labels.update(labels)

    def _record(self, node: TracedValue) -> TracedValue:
        if node.node_id in self._nodes:
            raise TraceGraphError(f"Node '{node.node_id}' already recorded")
        missing = [i for i in node.inputs if i not in self._nodes]
        if missing:
            raise TraceGraphError(
                f"Node '{node.node_id}' references unrecorded inputs: {', '.join(missing)}"
            )
        self._nodes[node.node_id] = node
        if self._debug_logging:
            logger.debug("trace %s = %s <- %s", node.node_id, node.amount, list(node.inputs))
        return node

    def _label(self, node_id: str, label: Optional[str]) -> str:
        return label or self._labels.get(node_id, node_id)

    def document(
        self,
        node_id: str,
        amount: Cents,
        label: Optional[str] = None,
        document_ref: Optional[str] = None,
    ) -> TracedValue:
        """Record an amount read straight off an information return."""
        return self._record(TracedValue(
            node_id=node_id,
            amount=amount,
            label=self._label(node_id, label),
            source_kind=SourceKind.DOCUMENT,
            document_ref=document_ref,
        ))

    def user_entry(self, node_id: str, amount: Cents, label: Optional[str] = None) -> TracedValue:
        """Record an amount the filer typed in."""
        return self._record(TracedValue(
            node_id=node_id,
            amount=amount,
            label=self._label(node_id, label),
            source_kind=SourceKind.USER_ENTRY,
        ))

    def computed(
        self,
        node_id: str,
        amount: Cents,
        inputs: Sequence[str] = (),
        label: Optional[str] = None,
        irs_citation: Optional[str] = None,
    ) -> TracedValue:
        """Record a derived amount. All ``inputs`` must already be recorded."""
        return self._record(TracedValue(
            node_id=node_id,
            amount=amount,
            label=self._label(node_id, label),
            source_kind=SourceKind.COMPUTED,
            inputs=tuple(dict.fromkeys(inputs)),
            irs_citation=irs_citation,
        ))

    def namespaced(self, prefix: str) -> "NamespacedTraceBuilder":
        return NamespacedTraceBuilder(self, prefix)

    def freeze(self) -> "TraceGraph":
        return TraceGraph(self._nodes)


class NamespacedTraceBuilder:
    """
    View over a builder that prefixes local node ids with ``<prefix>.``.

    Input ids that already exist in the shared graph (``form1040.line11``)
    are used as-is; anything else is treated as local and prefixed.
    """

    def __init__(self, parent: TraceGraphBuilder, prefix: str):
        self._parent = parent
        self.prefix = prefix

    def qualify(self, local_id: str) -> str:
        if local_id.startswith(self.prefix + "."):
            return local_id
        return f"{self.prefix}.{local_id}"

    def _resolve_input(self, node_id: str) -> str:
        if node_id in self._parent:
            return node_id
        return self.qualify(node_id)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._parent or self.qualify(node_id) in self._parent

    def amount(self, node_id: str) -> Cents:
        return self._parent.amount(self._resolve_input(node_id))

    def add_labels(self, labels: Mapping[str, str]) -> None:
        self._parent.add_labels({self.qualify(k): v for k, v in labels.items()})

    def document(self, node_id, amount, label=None, document_ref=None) -> TracedValue:
        return self._parent.document(self.qualify(node_id), amount, label, document_ref)

    def user_entry(self, node_id, amount, label=None) -> TracedValue:
        return self._parent.user_entry(self.qualify(node_id), amount, label)

    def computed(self, node_id, amount, inputs=(), label=None, irs_citation=None) -> TracedValue:
        return self._parent.computed(
            self.qualify(node_id),
            amount,
            [self._resolve_input(i) for i in inputs],
            label,
            irs_citation,
        )


class TraceGraph:
    """Immutable node map produced by ``TraceGraphBuilder.freeze()``."""

    def __init__(self, nodes: Mapping[str, TracedValue]):
        self._nodes = MappingProxyType(dict(nodes))

    @property
    def nodes(self) -> Mapping[str, TracedValue]:
        return self._nodes

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, node_id: str) -> TracedValue:
        return self._nodes[node_id]

    def get(self, node_id: str) -> Optional[TracedValue]:
        return self._nodes.get(node_id)

    def ids(self) -> List[str]:
        return list(self._nodes)

    def amounts(self) -> Dict[str, Cents]:
        return {node_id: node.amount for node_id, node in self._nodes.items()}

    def build_trace(self, node_id: str, max_depth: Optional[int] = None) -> TraceNode:
        """Expand ``node_id`` into a nested tree of its inputs."""
        node = self._nodes[node_id]
        tree = TraceNode(
            node_id=node.node_id,
            label=node.label,
            amount=node.amount,
            source_kind=node.source_kind,
            irs_citation=node.irs_citation,
        )
        if max_depth is None or max_depth > 0:
            next_depth = None if max_depth is None else max_depth - 1
            tree.children = [self.build_trace(i, next_depth) for i in node.inputs]
        return tree

    def explain(self, node_id: str, max_depth: Optional[int] = None) -> str:
        """
        Render the derivation trail of a node as indented text::

            Adjusted gross income: $80,500.00
            |- Total income: $84,000.00
            |  |- Total wages: $84,000.00
            |- Adjustments to income: $3,500.00
        """
        lines: List[str] = []
        self._render(self.build_trace(node_id, max_depth), 0, lines)
        return "\n".join(lines)

    def _render(self, tree: TraceNode, depth: int, lines: List[str]) -> None:
        prefix = "" if depth == 0 else "|  " * (depth - 1) + "|- "
        text = f"{prefix}{tree.label}: {format_money(tree.amount)}"
        if tree.irs_citation:
            text += f" [{tree.irs_citation}]"
        lines.append(text)
        for child in tree.children:
            self._render(child, depth + 1, lines)

    def topological_order(self) -> List[str]:
        """
        Node ids ordered inputs-first (Kahn's algorithm, ties by insertion order).

        Raises:
            TraceGraphError: If the node map contains a cycle or a dangling input
        """
        pending: Dict[str, int] = {}
        dependents: Dict[str, List[str]] = {node_id: [] for node_id in self._nodes}
        for node_id, node in self._nodes.items():
            for input_id in node.inputs:
                if input_id not in self._nodes:
                    raise TraceGraphError(f"Node '{node_id}' references unknown input '{input_id}'")
                dependents[input_id].append(node_id)
            pending[node_id] = len(node.inputs)

        ready = deque(node_id for node_id, count in pending.items() if count == 0)
        order: List[str] = []
        while ready:
            current = ready.popleft()
            order.append(current)
            for dependent in dependents[current]:
                pending[dependent] -= 1
                if pending[dependent] == 0:
                    ready.append(dependent)

        if len(order) != len(self._nodes):
            stuck = sorted(node_id for node_id, count in pending.items() if count > 0)
            raise TraceGraphError(f"Cycle detected among: {', '.join(stuck)}")
        return order

    def to_dict(self) -> Dict[str, Dict]:
        return {node_id: node.to_dict() for node_id, node in self._nodes.items()}
