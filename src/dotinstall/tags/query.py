"""
Query evaluation over the tag store.

A query is a sequence of signed operands such as ``&editors |fonts``. The
result starts as the universe (every tagged package) and each operand, left
to right, either intersects it with a tag (AND) or merges a tag into it (OR).
"""

import logging
from typing import Iterable, List, Sequence

from dotinstall.core.exceptions import MalformedOperandError
from dotinstall.tags.schemas import Operand, Operator, QueryResult
from dotinstall.tags.setops import sorted_intersect, sorted_union_dedup
from dotinstall.tags.store import TagStore, is_valid_name

logger = logging.getLogger(__name__)

# Tokens that switch the operator for the tags that follow
AND_TOKENS = {"-a", "--and", Operator.AND.value}
OR_TOKENS = {"-o", "--or", Operator.OR.value}


def parse_query(tokens: Iterable[str]) -> List[Operand]:
    """
    Parse command-line style query tokens into operands.

    ``-a``/``--and``/``&`` and ``-o``/``--or``/``|`` set the operator for
    the following tags (AND by default). A token like ``&tag`` or ``|tag``
    carries its own operator without changing the current one.

    Raises:
        MalformedOperandError: For an invalid tag name, or an operator
            token with no tag after it
    """
    operands: List[Operand] = []
    op = Operator.AND
    pending = False  # Operator token seen, tag not yet

    for token in tokens:
        if token in AND_TOKENS:
            op, pending = Operator.AND, True
            continue
        if token in OR_TOKENS:
            op, pending = Operator.OR, True
            continue

        token_op, tag = op, token
        if token[:1] in (Operator.AND.value, Operator.OR.value):
            token_op, tag = Operator(token[0]), token[1:]
        if not is_valid_name(tag):
            raise MalformedOperandError(f"Invalid tag in query operand: {token!r}")
        operands.append(Operand(operator=token_op, tag=tag))
        pending = False

    if pending:
        raise MalformedOperandError(f"Operator '{op.value}' is not followed by a tag")
    return operands


class QueryEvaluator:
    """
    Evaluates operand sequences against a TagStore.
    """

    def __init__(self, store: TagStore):
        self.store = store

    def evaluate(self, operands: Sequence[Operand]) -> QueryResult:
        """
        Evaluate a query.

        Tags referenced by the query are created (empty) if they don't exist
        yet. A tag file that cannot be read is treated as empty and noted in
        the result's warnings.

        Args:
            operands: Signed tags, applied left to right

        Returns:
            QueryResult with the sorted member list

        Raises:
            InstallRootNotFoundError: If the store's install root is missing
        """
        self.store.require_root()
        result = QueryResult(operands=list(operands))

        with self.store.lock(shared=True):
            members = self.store.universe(warnings=result.warnings)
            logger.debug(f"Universe has {len(members)} packages")

            for operand in result.operands:
                self.store.ensure(operand.tag)
                try:
                    tag_members = self.store.members(operand.tag)
                except OSError as e:
                    message = f"Treating unreadable tag '{operand.tag}' as empty: {e}"
                    logger.warning(message)
                    result.warnings.append(message)
                    tag_members = []

                if operand.operator == Operator.AND:
                    members = sorted_intersect(members, tag_members)
                elif operand.operator == Operator.OR:
                    members = sorted_union_dedup(members, tag_members)
                else:
                    raise MalformedOperandError(f"Unknown operator in operand {operand!r}")
                logger.debug(f"After {operand}: {len(members)} packages")

        result.members = members
        return result

    def run(self, tokens: Iterable[str], save: bool = True) -> QueryResult:
        """
        Parse and evaluate command-line tokens, optionally saving the result
        to the store's .query file.
        """
        result = self.evaluate(parse_query(tokens))
        if save:
            self.store.save_query(result.members)
        return result
