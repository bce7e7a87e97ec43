"""Structural recursion check over named-type references.

Every reference from one named type to another is an edge. An edge is
*guarded* when the path from the declaring type to the reference crosses a
variable-size container (seq, set, map) or an option; such a path admits a
finite value that stops recursing. Every other edge is *direct*: fixed
arrays, tuples, results, struct fields, enum payloads and newtype inners all
require a value of the referenced type to be present.

A generic argument sits wherever the target places its parameter, so
``Boxed<Tree>`` is guarded when ``Boxed<T>`` wraps ``T`` in a sequence and
direct when ``Boxed<T>`` holds ``T`` as is.

A cycle made only of direct edges describes a type with no finite values.
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Set, Tuple

from askitypes.models.types import (
    ArrayType,
    MapType,
    NamedType,
    OptionType,
    ParamType,
    ResultType,
    SeqType,
    SetType,
    TupleType,
)

Edge = Tuple[str, bool]
# ("named" | "param", name, guarded)
Occurrence = Tuple[str, str, bool]


def _occurrences(
    expr, guarded: bool, known: Optional[Mapping[str, Any]], visiting: FrozenSet[str]
) -> Iterator[Occurrence]:
    if isinstance(expr, ParamType):
        yield "param", expr.name, guarded
    elif isinstance(expr, NamedType):
        yield "named", expr.name, guarded
        guards = _param_guards(expr.name, known, visiting)
        for i, arg in enumerate(expr.args):
            # Without the target's declaration the argument stays at the reference's position.
            arg_guarded = guarded or (guards[i] if guards is not None and i < len(guards) else False)
            yield from _occurrences(arg, arg_guarded, known, visiting)
    elif isinstance(expr, (SeqType, SetType, OptionType)):
        yield from _occurrences(expr.item, True, known, visiting)
    elif isinstance(expr, MapType):
        yield from _occurrences(expr.key, True, known, visiting)
        yield from _occurrences(expr.value, True, known, visiting)
    elif isinstance(expr, ArrayType):
        yield from _occurrences(expr.item, guarded, known, visiting)
    elif isinstance(expr, ResultType):
        yield from _occurrences(expr.ok, guarded, known, visiting)
        yield from _occurrences(expr.err, guarded, known, visiting)
    elif isinstance(expr, TupleType):
        for item in expr.items:
            yield from _occurrences(item, guarded, known, visiting)


def _param_guards(
    name: str, known: Optional[Mapping[str, Any]], visiting: FrozenSet[str]
) -> Optional[List[bool]]:
    """
    For each parameter of ``name``, whether every occurrence of it in the
    declaration is guarded. A declaration already being expanded counts as
    unguarded throughout.
    """
    if known is None or name not in known:
        return None
    decl = known[name]
    if name in visiting:
        return [False] * len(decl.params)
    guarded = {param: True for param in decl.params}
    for _, member in decl.members():
        for kind, found, is_guarded in _occurrences(member, False, known, visiting | {name}):
            if kind == "param" and found in guarded and not is_guarded:
                guarded[found] = False
    return [guarded[param] for param in decl.params]


def reference_edges(declaration, known: Optional[Mapping[str, Any]] = None) -> List[Edge]:
    """
    (target name, guarded) for every named reference in a declaration.

    ``known`` supplies generic targets, so arguments take the guardedness of
    the parameter position they fill.
    """
    edges: List[Edge] = []
    for _, expr in declaration.members():
        for kind, name, guarded in _occurrences(expr, False, known, frozenset()):
            if kind == "named":
                edges.append((name, guarded))
    return edges


def direct_graph(declarations: Mapping[str, object]) -> Dict[str, List[str]]:
    graph: Dict[str, List[str]] = {}
    for name, decl in declarations.items():
        targets: List[str] = []
        for target, guarded in reference_edges(decl, declarations):
            if not guarded and target in declarations and target not in targets:
                targets.append(target)
        graph[name] = targets
    return graph


def find_unguarded_cycle(declarations: Mapping[str, object]) -> Optional[List[str]]:
    """Return the first direct-only cycle as ``[A, B, ..., A]``, or None."""
    graph = direct_graph(declarations)
    done: Set[str] = set()

    for root in graph:
        if root in done:
            continue
        stack: List[str] = []
        on_stack: Set[str] = set()
        # Iterative DFS; each frame is (node, iterator over its targets).
        frames = [(root, iter(graph[root]))]
        stack.append(root)
        on_stack.add(root)
        while frames:
            node, targets = frames[-1]
            advanced = False
            for target in targets:
                if target in on_stack:
                    start = stack.index(target)
                    return stack[start:] + [target]
                if target not in done:
                    frames.append((target, iter(graph[target])))
                    stack.append(target)
                    on_stack.add(target)
                    advanced = True
                    break
            if not advanced:
                frames.pop()
                stack.pop()
                on_stack.discard(node)
                done.add(node)
    return None
