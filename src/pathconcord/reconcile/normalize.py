"""
Pathway identifier normalization.

Each analysis engine decorates pathway names differently. For Reactome:

    GSEA (msigdb gene sets)     REACTOME_CELL_CYCLE
    fry (topology gene sets)    reactome.Cell Cycle
    SPIA (graphite pathways)    Cell Cycle
    sSNAPPY                     reactome.Cell Cycle

Normalization strips the decoration with an explicit, registered rule per
method. A rule holds one or more regex patterns with a named group 'id';
the first pattern that matches wins. Identifiers no pattern matches raise
UnknownFormatError; nothing passes through unnormalized.

Normalization is a pure string transform: no lookups, no state. The
optional join_key() fold is a second, separate step that makes
MSigDB-style upper-case names comparable with display names.

Examples:
    >>> normalize("REACTOME_CELL_CYCLE", MethodName.GSEA)
    'CELL_CYCLE'
    >>> normalize("reactome.Cell Cycle", MethodName.SSNAPPY)
    'Cell Cycle'
    >>> join_key("Cell Cycle") == join_key("CELL_CYCLE")
    True
"""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Pattern, Sequence

from .types import MethodName, MethodResult, UnknownFormatError, validate_results

logger = logging.getLogger(__name__)

__all__ = [
    "NormalizationRule",
    "RuleTable",
    "DEFAULT_RULES",
    "normalize",
    "decorate",
    "join_key",
    "normalize_results",
]


@dataclass(frozen=True)
class NormalizationRule:
    """
    Decoration-stripping rule for one method.

    Attributes:
        method: Method the rule applies to
        patterns: Regexes with a named group 'id', tried in order. Each is
            compiled with re.DOTALL and must match the whole identifier
        template: Format string with an '{id}' field that re-applies the
            method's canonical decoration (inverse of normalization)

    Example:
        >>> rule = NormalizationRule(
        ...     method=MethodName.GSEA,
        ...     patterns=(r"^REACTOME_(?P<id>.+)$",),
        ...     template="REACTOME_{id}",
        ... )
        >>> rule.strip("REACTOME_APOPTOSIS")
        'APOPTOSIS'
    """

    method: MethodName
    patterns: tuple[str, ...]
    template: str = "{id}"
    _compiled: tuple[Pattern, ...] = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.patterns:
            raise ValueError(f"Rule for {self.method.value} needs at least one pattern")
        if "{id}" not in self.template:
            raise ValueError(f"template must contain '{{id}}': {self.template!r}")

        compiled = []
        for pattern in self.patterns:
            try:
                regex = re.compile(pattern, re.DOTALL)
            except re.error as e:
                raise ValueError(f"Invalid pattern {pattern!r} for {self.method.value}: {e}")
            if "id" not in regex.groupindex:
                raise ValueError(f"pattern must contain named group 'id': {pattern!r}")
            compiled.append(regex)
        object.__setattr__(self, "_compiled", tuple(compiled))

    def strip(self, pathway_id: str) -> str:
        """
        Remove the method's decoration.

        Raises:
            UnknownFormatError: If no pattern matches or the captured id is empty
        """
        text = str(pathway_id)
        for regex in self._compiled:
            match = regex.fullmatch(text)
            if match and match.group("id"):
                return match.group("id")
        raise UnknownFormatError(
            text, self.method.value, f"tried {len(self._compiled)} pattern(s)"
        )

    def apply(self, raw_id: str) -> str:
        return self.template.format(id=raw_id)


class RuleTable(Mapping[MethodName, NormalizationRule]):
    """
    Immutable registry of normalization rules keyed by method.

    Use with_rule() to derive a table with an added or replaced rule; the
    original table is left untouched.
    """

    def __init__(self, rules: Iterable[NormalizationRule] = ()):
        table: dict[MethodName, NormalizationRule] = {}
        for rule in rules:
            table[rule.method] = rule
        self._rules = table

    def __getitem__(self, method: MethodName) -> NormalizationRule:
        return self._rules[method]

    def __iter__(self):
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleTable({sorted(m.value for m in self._rules)})"

    def with_rule(self, rule: NormalizationRule) -> "RuleTable":
        return RuleTable(list(self._rules.values()) + [rule])

    def lookup(self, method: MethodName | str, pathway_id: str = "") -> NormalizationRule:
        """
        Rule for a method.

        Raises:
            UnknownFormatError: If the method has no registered rule
        """
        try:
            key = MethodName.parse(method)
        except ValueError:
            raise UnknownFormatError(pathway_id, method, "method is not registered")
        if key not in self._rules:
            raise UnknownFormatError(pathway_id, key.value, "method has no normalization rule")
        return self._rules[key]

    @classmethod
    def from_config(
        cls, entries: Mapping[str, Mapping[str, object]], base: Optional["RuleTable"] = None
    ) -> "RuleTable":
        """
        Build a table from a config mapping, layered over ``base``.

        Config shape::

            normalization:
              gsea:
                patterns: ["^REACTOME_(?P<id>.+)$", "^KEGG_(?P<id>.+)$"]
                template: "REACTOME_{id}"
        """
        table = base if base is not None else DEFAULT_RULES
        for method_key, entry in entries.items():
            method = MethodName.parse(method_key)
            patterns = entry.get("patterns")
            if isinstance(patterns, str):
                patterns = [patterns]
            if not patterns:
                raise ValueError(f"Normalization rule for {method.value} lists no patterns")
            table = table.with_rule(
                NormalizationRule(
                    method=method,
                    patterns=tuple(str(p) for p in patterns),
                    template=str(entry.get("template", "{id}")),
                )
            )
        return table


DEFAULT_RULES = RuleTable([
    NormalizationRule(
        method=MethodName.GSEA,
        patterns=(r"REACTOME_(?P<id>.+)",),
        template="REACTOME_{id}",
    ),
    NormalizationRule(
        method=MethodName.FRY,
        patterns=(r"reactome\.(?P<id>.+)",),
        template="reactome.{id}",
    ),
    # graphite pathway names carry no decoration
    NormalizationRule(
        method=MethodName.SPIA,
        patterns=(r"(?P<id>.+)",),
        template="{id}",
    ),
    NormalizationRule(
        method=MethodName.SSNAPPY,
        patterns=(r"reactome\.(?P<id>.+)",),
        template="reactome.{id}",
    ),
])


def normalize(
    pathway_id: str,
    method: MethodName | str,
    rules: RuleTable = DEFAULT_RULES,
) -> str:
    """
    Strip a method's decoration from a pathway identifier.

    Args:
        pathway_id: Identifier as emitted by the method
        method: Registered method name
        rules: Rule table (default: Reactome conventions)

    Returns:
        Normalized identifier

    Raises:
        UnknownFormatError: If the method is unregistered or no pattern matches
    """
    return rules.lookup(method, pathway_id).strip(pathway_id)


def decorate(
    raw_id: str,
    method: MethodName | str,
    rules: RuleTable = DEFAULT_RULES,
) -> str:
    """Apply a method's decoration; normalize(decorate(x, m), m) == x."""
    return rules.lookup(method).apply(raw_id)


_NON_ALNUM = re.compile(r"[^0-9A-Za-z]+")


def join_key(normalized_id: str) -> str:
    """
    Case- and punctuation-insensitive key for cross-convention joins.

    Upper-cases and collapses every run of non-alphanumeric characters to a
    single underscore, trimming leading/trailing underscores.

    Example:
        >>> join_key("Signaling by NOTCH1 (in cancer)")
        'SIGNALING_BY_NOTCH1_IN_CANCER'
    """
    return _NON_ALNUM.sub("_", normalized_id).strip("_").upper()


def normalize_results(
    results: Sequence[MethodResult],
    rules: RuleTable = DEFAULT_RULES,
    fold: bool = False,
) -> list[MethodResult]:
    """
    Return new records whose pathway_id is the normalized identifier.

    The original identifier is kept in raw_pathway_id. Input records are not
    modified.

    Args:
        results: Rows from a single method
        rules: Rule table
        fold: Also apply join_key() to the normalized id

    Raises:
        UnknownFormatError: If any identifier fails to normalize
        ValueError: If two identifiers normalize to the same id
    """
    method = validate_results(results)
    if method is None:
        return []

    rule = rules.lookup(method)
    out: list[MethodResult] = []
    seen: dict[str, str] = {}

    for r in results:
        raw = r.raw_pathway_id if r.raw_pathway_id is not None else r.pathway_id
        norm = rule.strip(r.pathway_id)
        if fold:
            norm = join_key(norm)
        if norm in seen:
            raise ValueError(
                f"{method.value}: identifiers {seen[norm]!r} and {raw!r} "
                f"both normalize to {norm!r}"
            )
        seen[norm] = raw
        out.append(dataclasses.replace(r, pathway_id=norm, raw_pathway_id=raw))

    logger.debug(f"Normalized {len(out)} {method.value} identifiers (fold={fold})")
    return out
