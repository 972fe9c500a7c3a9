"""
Access log schema definitions.

The load balancer has written two line layouts over time: the classic
16-field format and a 17-field format with the routing target group
appended. Lines are matched to a layout purely by token count.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ...config.constants import CLASSIC_LOG_FIELDS, TARGET_GROUP_LOG_FIELDS


class LogFormat(Enum):
    """Known access log layouts."""

    CLASSIC = "classic"
    TARGET_GROUP = "target_group"


@dataclass(frozen=True)
class LogSchema:
    """
    Field layout of one access log format.

    Attributes:
        log_format: Which layout this is
        fields: Field names in line order
    """

    log_format: LogFormat
    fields: tuple[str, ...]

    @property
    def arity(self) -> int:
        """Number of tokens a line of this format contains."""
        return len(self.fields)


CLASSIC_SCHEMA = LogSchema(LogFormat.CLASSIC, CLASSIC_LOG_FIELDS)
TARGET_GROUP_SCHEMA = LogSchema(LogFormat.TARGET_GROUP, TARGET_GROUP_LOG_FIELDS)

# Arity -> schema lookup
ALB_SCHEMAS: dict[int, LogSchema] = {
    schema.arity: schema for schema in (CLASSIC_SCHEMA, TARGET_GROUP_SCHEMA)
}

KNOWN_ARITIES: tuple[int, ...] = tuple(sorted(ALB_SCHEMAS))


def get_schema(field_count: int) -> Optional[LogSchema]:
    """
    Look up the schema matching a token count.

    Args:
        field_count: Number of tokens produced by the tokenizer

    Returns:
        Matching LogSchema, or None if no known format has that arity
    """
    return ALB_SCHEMAS.get(field_count)
