import re
import uuid

from .. import config
from ..database.ops import DBOperations
from ..exceptions import AllocationError, DatabaseError

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def new_global_id() -> str:
    """Random identifier for the id_global columns."""
    return str(uuid.uuid4())


def parse_integer(value) -> int:
    if isinstance(value, bool) or value is None:
        raise ValueError(value)
    if isinstance(value, (int, float)):
        return int(value)
    # Text storage: take the leading integer part, like strtoll would
    m = _LEADING_INT.match(str(value))
    if not m:
        raise ValueError(value)
    return int(m.group(1))


class IdAllocator:
    """
    Hands out id_local values from Lightroom's single entity counter.

    Lightroom does not use SQLite's rowids; every new row in every table
    takes the next value of Adobe_entityIDCounter. The counter is persisted
    on every call so it can never regress or repeat, even across runs.
    """
    def __init__(self, db_ops: DBOperations):
        self.db = db_ops

    def allocate(self) -> int:
        try:
            value = self.db.get_variable(config.ID_COUNTER_VAR)
        except DatabaseError as e:
            raise AllocationError(f"Failed to read {config.ID_COUNTER_VAR}: {e}") from e

        if value is None:
            raise AllocationError(f"{config.ID_COUNTER_VAR} is missing from the catalog")
        try:
            current = parse_integer(value)
        except ValueError:
            raise AllocationError(f"{config.ID_COUNTER_VAR} is not numeric: {value!r}")
        if current < 0:
            raise AllocationError(f"{config.ID_COUNTER_VAR} is negative: {current}")

        try:
            changed = self.db.update_variable(config.ID_COUNTER_VAR, current + 1)
        except DatabaseError as e:
            raise AllocationError(f"Failed to advance {config.ID_COUNTER_VAR}: {e}") from e
        if changed != 1:
            raise AllocationError(f"Failed to advance {config.ID_COUNTER_VAR}: {changed} rows updated")

        return current
