"""Row policy registry and evaluator.

Policies for the same (table, operation) are OR'd: a row is visible, or a
write allowed, as soon as one policy permits it. Tables without a policy
for an operation are closed to everyone but admins and the service role.
"""
import logging
from collections import defaultdict

from app.enums import Operation
from app.errors import AuthorizationDenied

logger = logging.getLogger(__name__)


class Policy:
    """A named predicate pair.

    ``using`` is evaluated against the row as it currently exists (select,
    update, delete); ``check`` against the row as it would be written
    (insert, update). A missing predicate places no constraint.
    """

    def __init__(self, name, table, operations, using=None, check=None):
        self.name = name
        self.table = table
        self.operations = tuple(Operation(op) for op in operations)
        self.using = using
        self.check = check

    def permits_existing(self, principal, row) -> bool:
        return self.using is None or bool(self.using(principal, row))

    def permits_new(self, principal, row) -> bool:
        return self.check is None or bool(self.check(principal, row))

    def __repr__(self):
        ops = ",".join(op.value for op in self.operations)
        return f"<Policy {self.table}.{self.name} [{ops}]>"


class PolicyRegistry:
    def __init__(self):
        self._policies = defaultdict(list)
        self.service_only_tables = set()
        self.append_only_tables = set()

    def register(self, policy: Policy):
        for operation in policy.operations:
            self._policies[(policy.table, operation)].append(policy)
        return policy

    def policy(self, table, operations, name=None, check=None):
        """Decorator form: the decorated function becomes the ``using`` predicate."""
        def decorator(fn):
            self.register(Policy(name or fn.__name__, table, operations, using=fn, check=check))
            return fn
        return decorator

    def mark_service_only(self, *tables):
        self.service_only_tables.update(tables)

    def mark_append_only(self, *tables):
        self.append_only_tables.update(tables)

    def policies_for(self, table, operation):
        return list(self._policies.get((table, Operation(operation)), ()))

    def tables(self):
        return sorted({table for table, _ in self._policies})


class PendingUpdate:
    """An update authorized against the current row, awaiting the new row."""

    def __init__(self, evaluator, principal, table, policies=None, unconditional=False):
        self.evaluator = evaluator
        self.principal = principal
        self.table = table
        self.policies = policies or []
        self.unconditional = unconditional

    def confirm(self, new_row):
        if self.unconditional:
            return
        if not any(policy.permits_new(self.principal, new_row) for policy in self.policies):
            self.evaluator.deny(self.principal, Operation.UPDATE, self.table)


class PolicyEvaluator:
    def __init__(self, registry: PolicyRegistry):
        self.registry = registry

    def _decide_without_row(self, principal, operation, table):
        """The verdict when it does not depend on the row, otherwise None."""
        if table in self.registry.append_only_tables and operation in (Operation.UPDATE, Operation.DELETE):
            return False
        if principal.is_service:
            return True
        if table in self.registry.service_only_tables:
            return False
        if principal.is_admin:
            return True
        return None

    def is_allowed(self, principal, operation, table, row) -> bool:
        """Decide a select, insert or delete of one row."""
        operation = Operation(operation)
        verdict = self._decide_without_row(principal, operation, table)
        if verdict is not None:
            return verdict

        for policy in self.registry.policies_for(table, operation):
            if operation == Operation.INSERT:
                allowed = policy.permits_new(principal, row)
            elif operation == Operation.UPDATE:
                allowed = policy.permits_existing(principal, row) and policy.permits_new(principal, row)
            else:
                allowed = policy.permits_existing(principal, row)
            if allowed:
                return True
        return False

    def deny(self, principal, operation, table):
        logger.info("Denied %s on %s for %r", Operation(operation).value, table, principal)
        raise AuthorizationDenied(f"{Operation(operation).value} on {table}")

    def authorize(self, principal, operation, table, row):
        if not self.is_allowed(principal, operation, table, row):
            self.deny(principal, operation, table)

    def begin_update(self, principal, table, row) -> PendingUpdate:
        """First half of an update check, run before any change is applied.

        The policies whose ``using`` accepts the current row are kept; after
        the changes are applied ``PendingUpdate.confirm`` requires one of
        them to accept the new row through its ``check``.
        """
        verdict = self._decide_without_row(principal, Operation.UPDATE, table)
        if verdict is False:
            self.deny(principal, Operation.UPDATE, table)
        if verdict is True:
            return PendingUpdate(self, principal, table, unconditional=True)

        policies = [
            policy
            for policy in self.registry.policies_for(table, Operation.UPDATE)
            if policy.permits_existing(principal, row)
        ]
        if not policies:
            self.deny(principal, Operation.UPDATE, table)
        return PendingUpdate(self, principal, table, policies=policies)

    def filter_visible(self, principal, table, rows):
        """Rows the principal may see; the rest are dropped without error."""
        return [row for row in rows if self.is_allowed(principal, Operation.SELECT, table, row)]
