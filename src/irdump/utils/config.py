"""
Configuration constants to replace magic numbers throughout irdump
"""

# Dump layout constants. The widths are fixed so that every node header,
# the function header/footer and the aligned closing lines share one column.
FUNC_INDENT = " " * 8  # room for the leading "(;nnn;)" expression ids
FUNC_HEADER = FUNC_INDENT + "(func\n"
FUNC_FOOTER = FUNC_INDENT + ")"
IMPORT_PLACEHOLDER = "(import func)"

EXPR_ID_OPEN = "(;"
EXPR_ID_CLOSE = ";)"
EXPR_INDEX_WIDTH = 3  # right-aligned, space padded

CLOSER_FILLER = " " * 7  # width of "(;nnn;)"
INDENT_LEAD = " "
INDENT_STEP = "  "  # per nesting level

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

# Logging constants
LOG_LEVEL_ENV = "IRDUMP_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"
