"""Composable validation rules: predicates, negation and counting rulesets."""

__version__ = "0.1.0"

from .errors import (
    CallbackFailure,
    InvalidArgument,
    InvalidCondition,
    InvalidPattern,
    NoSuchRule,
    RuleError,
    RulesetLoadError,
    RulesetSealed,
)
from .load import build_ruleset, load_ruleset
from .predicates import (
    PREDICATES,
    list_predicates,
    not_,
    register_predicate,
    resolve,
)
from .rule import Evaluable, Negation, Rule
from .ruleset import (
    ALL,
    ANY,
    AT_LEAST,
    AT_MOST,
    EXACTLY,
    IF,
    NONE,
    ONE,
    UNLESS,
    Policy,
    PolicyKind,
    Ruleset,
    StopMode,
    evaluate,
)
from .schema import RulesetDef

__all__ = [
    "__version__",
    # Errors
    "CallbackFailure",
    "InvalidArgument",
    "InvalidCondition",
    "InvalidPattern",
    "NoSuchRule",
    "RuleError",
    "RulesetLoadError",
    "RulesetSealed",
    # Predicates
    "PREDICATES",
    "list_predicates",
    "not_",
    "register_predicate",
    "resolve",
    # Rules
    "Evaluable",
    "Negation",
    "Rule",
    # Rulesets
    "ALL",
    "ANY",
    "AT_LEAST",
    "AT_MOST",
    "EXACTLY",
    "IF",
    "NONE",
    "ONE",
    "UNLESS",
    "Policy",
    "PolicyKind",
    "Ruleset",
    "StopMode",
    "evaluate",
    # Config
    "RulesetDef",
    "build_ruleset",
    "load_ruleset",
]
