from collections import Counter
from collections.abc import Hashable, Iterable
from dataclasses import dataclass
from enum import Enum

from gqmeta import log
from gqmeta.exceptions import RegistryValidationError
from gqmeta.models import FieldMetadata
from gqmeta.registry import Registry, describe_target


class IssueKind(str, Enum):
    FIELD_TYPE_CONFLICT = "fieldTypeConflict"
    ARGUMENT_GAP = "argumentGap"
    UNNAMED_ARGUMENT = "unnamedArgument"
    DUPLICATE_INJECTION = "duplicateInjection"
    DUPLICATE_OPERATION = "duplicateOperation"


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ValidationIssue:
    """One finding of the consistency check.

    Args:
        kind: What went wrong
        severity: Whether the finding blocks schema construction
        target: Qualified name of the target class
        field: Name of the affected field, if any
        message: Human readable description
    """

    kind: IssueKind
    severity: Severity
    target: str
    field: str | None
    message: str

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


class RegistryChecker:
    """Post-registration consistency pass over a Registry.

    The registry itself resolves every collision silently; this pass reports
    what a schema builder would likely trip over.
    """

    def __init__(self, registry: Registry):
        self.registry = registry

    def check_explicit_types(self, target: Hashable) -> list[ValidationIssue]:
        issues = []
        for note in self.registry.get_supersessions(target):
            if note.attribute != "explicit_type":
                continue
            issues.append(
                self._issue(
                    IssueKind.FIELD_TYPE_CONFLICT,
                    Severity.ERROR,
                    target,
                    note.field_name,
                    f"declared with explicit type {note.previous!r} and {note.incoming!r}",
                )
            )
        return issues

    def check_arguments(self, target: Hashable, field: FieldMetadata) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        args = field.args or []
        injected = {marker.index for marker in (field.context, field.root) if marker is not None}

        for index, argument in enumerate(args):
            if argument is None:
                if index not in injected:
                    issues.append(
                        self._issue(
                            IssueKind.ARGUMENT_GAP,
                            Severity.WARNING,
                            target,
                            field.name,
                            f"has no metadata for parameter {index}",
                        )
                    )
            elif argument.name is None:
                issues.append(
                    self._issue(
                        IssueKind.UNNAMED_ARGUMENT,
                        Severity.ERROR,
                        target,
                        field.name,
                        f"argument at index {index} has no name",
                    )
                )

        arity = self.registry.get_arity(target, field.name)
        highest = max([len(args) - 1, *injected], default=-1)
        if arity is not None and highest >= arity:
            issues.append(
                self._issue(
                    IssueKind.ARGUMENT_GAP,
                    Severity.ERROR,
                    target,
                    field.name,
                    f"has metadata for parameter {highest} but the resolver takes {arity} parameter(s)",
                )
            )
        return issues

    def check_injections(self, target: Hashable, field: FieldMetadata) -> list[ValidationIssue]:
        issues = []
        if field.context is not None and field.root is not None and field.context.index == field.root.index:
            issues.append(
                self._issue(
                    IssueKind.DUPLICATE_INJECTION,
                    Severity.ERROR,
                    target,
                    field.name,
                    f"receives both context and root at index {field.context.index}",
                )
            )
        for marker_name, marker in (("context", field.context), ("root", field.root)):
            if marker is not None and field.argument(marker.index) is not None:
                issues.append(
                    self._issue(
                        IssueKind.DUPLICATE_INJECTION,
                        Severity.ERROR,
                        target,
                        field.name,
                        f"parameter {marker.index} is both the {marker_name} and a schema argument",
                    )
                )
        return issues

    def check_repeated_injections(self, target: Hashable) -> list[ValidationIssue]:
        return [
            self._issue(
                IssueKind.DUPLICATE_INJECTION,
                Severity.ERROR,
                target,
                note.field_name,
                f"{note.attribute} requested at index {note.incoming} after index {note.previous}",
            )
            for note in self.registry.get_supersessions(target)
            if note.attribute in {"context", "root"}
        ]

    def check_operations(self, target: Hashable) -> list[ValidationIssue]:
        issues = []
        for kind, names in (
            ("query", self.registry.get_query_fields(target)),
            ("mutation", self.registry.get_mutation_fields(target)),
        ):
            for name, count in Counter(names).items():
                if count > 1:
                    issues.append(
                        self._issue(
                            IssueKind.DUPLICATE_OPERATION,
                            Severity.WARNING,
                            target,
                            name,
                            f"registered as a {kind} {count} times",
                        )
                    )
        return issues

    def run(self, targets: Iterable[Hashable] | None = None) -> list[ValidationIssue]:
        """Check the given targets, or every target of the registry.

        Args:
            targets: Targets to check, all registered targets when None

        Returns:
            The issues found, in target order
        """
        issues: list[ValidationIssue] = []
        for target in self.registry.targets() if targets is None else targets:
            issues += self.check_explicit_types(target)
            for field in self.registry.get_all_fields(target):
                issues += self.check_arguments(target, field)
                issues += self.check_injections(target, field)
            issues += self.check_repeated_injections(target)
            issues += self.check_operations(target)
        return issues

    def _issue(
        self, kind: IssueKind, severity: Severity, target: Hashable, field: str | None, detail: str
    ) -> ValidationIssue:
        location = describe_target(target) if field is None else f"{describe_target(target)}.{field}"
        return ValidationIssue(kind, severity, describe_target(target), field, f"[{kind.value}] {location} {detail}")


def report_issues(issues: list[ValidationIssue], fail_on_error: bool = False) -> None:
    """Log each issue at its severity and optionally raise on errors.

    Args:
        issues: Issues returned by RegistryChecker.run
        fail_on_error: Raise when any issue has error severity

    Raises:
        RegistryValidationError: If fail_on_error is set and errors were found
    """
    for issue in issues:
        if issue.is_error:
            log.error(issue.message)
        else:
            log.warning(issue.message)

    errors = [issue for issue in issues if issue.is_error]
    if errors and fail_on_error:
        raise RegistryValidationError(errors)
