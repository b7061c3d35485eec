"""
SQL command classifier and permission policy.

Classification is a keyword heuristic, not a parser: comments are stripped,
whitespace collapsed and the first token looked up in fixed category lists.
Anything unknown is denied.

Known limitation: the multiple-statement check rejects any ';' left after
removing one trailing semicolon, including semicolons inside string literals.
"""
import enum
import logging
import re
from dataclasses import dataclass
from typing import Optional

from core.errors import PermissionDenied

logger = logging.getLogger(__name__)


class CommandCategory(str, enum.Enum):
    QUERY = "Query"            # DQL, always allowed
    MUTATION = "Mutation"      # DML, needs allow_dml
    DEFINITION = "Definition"  # DDL, needs allow_ddl
    FORBIDDEN = "Forbidden"
    UNRECOGNIZED = "Unrecognized"


QUERY_COMMANDS = frozenset({"SELECT", "SHOW", "DESCRIBE", "DESC", "EXPLAIN"})
MUTATION_COMMANDS = frozenset({"INSERT", "UPDATE", "DELETE", "REPLACE"})
DEFINITION_COMMANDS = frozenset({"CREATE", "ALTER", "DROP", "TRUNCATE", "RENAME"})
FORBIDDEN_COMMANDS = frozenset({
    "GRANT", "REVOKE",
    "SET",
    "LOCK", "UNLOCK",
    "CALL", "EXEC", "EXECUTE", "PREPARE", "DEALLOCATE",
    "START", "BEGIN", "COMMIT", "ROLLBACK", "SAVEPOINT",
    "USE",   # database context is passed explicitly to the executor
})

_LINE_COMMENT = re.compile(r"--.*$", re.MULTILINE)
_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")
_WHITESPACE = re.compile(r"\s+")
_TOKEN_SPLIT = re.compile(r"[\s;()]+")


@dataclass(frozen=True)
class PermissionPolicy:
    """DML/DDL switches fixed for the lifetime of a pool handle."""

    allow_dml: bool = False
    allow_ddl: bool = False


@dataclass(frozen=True)
class Classification:
    category: CommandCategory
    keyword: str
    problem: Optional[str] = None   # set when the statement is rejected before lookup


@dataclass(frozen=True)
class PermissionDecision:
    allowed: bool
    category: CommandCategory
    keyword: str
    reason: Optional[str] = None


def normalize_query(sql: str) -> str:
    """Strip comments, collapse whitespace, trim and uppercase."""
    if not sql or not isinstance(sql, str):
        return ""
    s = _LINE_COMMENT.sub("", sql)
    s = _BLOCK_COMMENT.sub("", s)
    s = _WHITESPACE.sub(" ", s)
    return s.strip().upper()


def _category_for(keyword: str) -> CommandCategory:
    if keyword in FORBIDDEN_COMMANDS:
        return CommandCategory.FORBIDDEN
    if keyword in QUERY_COMMANDS:
        return CommandCategory.QUERY
    if keyword in MUTATION_COMMANDS:
        return CommandCategory.MUTATION
    if keyword in DEFINITION_COMMANDS:
        return CommandCategory.DEFINITION
    return CommandCategory.UNRECOGNIZED


def classify(sql: str) -> Classification:
    normalized = normalize_query(sql)
    if not normalized:
        return Classification(CommandCategory.UNRECOGNIZED, "", "Empty or invalid query.")

    body = normalized[:-1] if normalized.endswith(";") else normalized
    keyword = _TOKEN_SPLIT.split(normalized)[0]
    if ";" in body:
        return Classification(
            _category_for(keyword), keyword, "Multiple statements detected (contains ';')."
        )
    if not keyword:
        return Classification(CommandCategory.UNRECOGNIZED, "", "Could not identify command.")
    return Classification(_category_for(keyword), keyword)


def is_permitted(category: CommandCategory, policy: PermissionPolicy) -> bool:
    if category is CommandCategory.FORBIDDEN:
        return False
    if category is CommandCategory.QUERY:
        return True
    if category is CommandCategory.MUTATION:
        return policy.allow_dml
    if category is CommandCategory.DEFINITION:
        return policy.allow_ddl
    return False


def _denial_reason(c: Classification) -> str:
    if c.category is CommandCategory.FORBIDDEN:
        return f"Command '{c.keyword}' is always disallowed."
    if c.category is CommandCategory.MUTATION:
        return f"DML command '{c.keyword}' requires MARIADB_ALLOW_DML=true."
    if c.category is CommandCategory.DEFINITION:
        return f"DDL command '{c.keyword}' requires MARIADB_ALLOW_DDL=true."
    return f"Command '{c.keyword}' is not recognized or explicitly allowed."


def evaluate_permission(sql: str, policy: PermissionPolicy) -> PermissionDecision:
    """Classify ``sql`` and apply ``policy``. Rejections are always logged with their reason."""
    c = classify(sql)
    if c.problem:
        logger.warning("Query rejected: %s", c.problem)
        return PermissionDecision(False, c.category, c.keyword, c.problem)

    if is_permitted(c.category, policy):
        logger.debug("Query allowed: %s command '%s'", c.category.value, c.keyword)
        return PermissionDecision(True, c.category, c.keyword)

    reason = _denial_reason(c)
    logger.warning(
        "Query rejected: %s (allow_dml=%s, allow_ddl=%s)",
        reason, policy.allow_dml, policy.allow_ddl,
    )
    return PermissionDecision(False, c.category, c.keyword, reason)


def check_permission(sql: str, policy: PermissionPolicy) -> PermissionDecision:
    """Like evaluate_permission, but raises PermissionDenied on rejection."""
    decision = evaluate_permission(sql, policy)
    if not decision.allowed:
        raise PermissionDenied(f"Query not permitted: {decision.reason}")
    return decision
