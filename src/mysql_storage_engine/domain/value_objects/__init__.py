"""Domain value objects."""

from mysql_storage_engine.domain.value_objects.table_name import TableName
from mysql_storage_engine.domain.value_objects.table_status import TableStatus

__all__ = [
    "TableName",
    "TableStatus",
]
