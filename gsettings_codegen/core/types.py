"""
Type mapping from schema type codes to accessor types.

Provides the fixed table of supported type codes and the argument/return
annotations generated setters and getters use for them.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from ..logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AccessorType:
    """
    Argument and return types of one key's accessors.

    The argument type may be a borrowed view (``Sequence[str]``) while the
    return type is always an owned value (``list[str]``).
    """

    arg_type: str
    ret_type: str


# Python annotations for every supported type code
PYTHON_TYPE_MAP: Dict[str, AccessorType] = {
    "b": AccessorType("bool", "bool"),
    "i": AccessorType("int", "int"),
    "u": AccessorType("int", "int"),
    "x": AccessorType("int", "int"),
    "t": AccessorType("int", "int"),
    "d": AccessorType("float", "float"),
    "(ii)": AccessorType("tuple[int, int]", "tuple[int, int]"),
    "as": AccessorType("Sequence[str]", "list[str]"),
    "s": AccessorType("str", "str"),
}


class TypeMapper:
    """
    Maps type codes to accessor types.

    Anything outside the table is unsupported; the caller decides whether an
    override covers it or compilation fails.
    """

    def __init__(self, type_overrides: Optional[Dict[str, AccessorType]] = None):
        """
        Initialize with the Python table.

        Args:
            type_overrides: Entries replacing or extending the fixed table
        """
        self._table = dict(PYTHON_TYPE_MAP)
        if type_overrides:
            self._table.update(type_overrides)

    def map_type_code(self, type_code: str) -> Optional[AccessorType]:
        """
        Map a type code to its accessor types.

        Returns:
            AccessorType, or None when the code is unsupported
        """
        accessor_type = self._table.get(type_code)
        if accessor_type is None:
            logger.debug("No table entry for type code '%s'", type_code)
        return accessor_type

    def is_supported(self, type_code: str) -> bool:
        return type_code in self._table

    @property
    def supported_type_codes(self) -> list[str]:
        return list(self._table)
