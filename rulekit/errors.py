"""
Error taxonomy for rule evaluation.

Expected mismatches are reported as ``False`` by predicates. Only malformed
invocation raises: bad argument types, unresolvable names, invalid patterns,
conditions that are not booleans, or a callback that blew up mid-evaluation.

Every error carries a numeric ``code``, a ``severity`` and a ``context`` mapping;
the message is rendered from the class ``template`` when none is given.
"""

from __future__ import annotations

from typing import Any


class RuleError(Exception):
    """Base class for all rulekit errors."""

    code: int = 1
    severity: str = "error"
    template: str = "rule error"

    def __init__(self, message: str | None = None, *, cause: BaseException | None = None, **context: Any):
        self.context: dict[str, Any] = context
        self.message = message if message is not None else self._render()
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause

    def _render(self) -> str:
        try:
            return self.template.format_map(self.context)
        except (KeyError, IndexError, ValueError):
            return self.template.split(":", 1)[0]

    def root(self) -> BaseException:
        """Return the originating exception at the bottom of the cause chain."""
        current: BaseException = self
        seen: set[int] = set()
        while current.__cause__ is not None and id(current) not in seen:
            seen.add(id(current))
            current = current.__cause__
        return current

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            "error": type(self).__name__,
            "code": self.code,
            "severity": self.severity,
            "message": self.message,
            "context": {k: _jsonable(v) for k, v in self.context.items()},
        }


class CallbackFailure(RuleError):
    """A rule, negation or nested ruleset raised while being invoked."""

    code = 2
    template = "error invoking {rule}: {root}"

    def __init__(
        self,
        message: str | None = None,
        *,
        cause: BaseException | None = None,
        policy: str | None = None,
        index: int | None = None,
        rule: str | None = None,
        **context: Any,
    ):
        self.policy = policy
        self.index = index
        self.rule = rule
        root = cause
        while root is not None and root.__cause__ is not None:
            root = root.__cause__
        context.setdefault("root", f"{type(root).__name__}: {root}" if root is not None else "unknown")
        super().__init__(message, cause=cause, policy=policy, index=index, rule=rule or "callable", **context)


class NoSuchRule(RuleError):
    """A predicate or negated-predicate name does not resolve."""

    code = 4
    template = "no rule {rule!r} exists"


class InvalidArgument(RuleError):
    """An auxiliary argument is the wrong type or shape for the predicate."""

    code = 8
    template = "invalid argument: {detail}"


class InvalidCondition(RuleError):
    """An IF/UNLESS condition is not (or did not evaluate to) a boolean."""

    code = 16
    severity = "warning"
    template = "condition must be boolean or callable; {type} provided"


class InvalidPattern(RuleError):
    """A regular expression failed to compile."""

    code = 32
    severity = "warning"
    template = "invalid regular expression {pattern!r}: {reason}"


class RulesetSealed(RuleError):
    """A ruleset was modified after it was frozen."""

    code = 64
    template = "ruleset {name} is frozen; rules cannot be added after evaluation"


class RulesetLoadError(RuleError):
    """A ruleset document is malformed."""

    code = 128
    template = "cannot load ruleset from {source}: {reason}"


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return repr(value)
