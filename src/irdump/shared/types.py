"""
Value and Operator Types

Immediates carry numpy scalars so that i32/i64 wrap-around and f32 single
precision follow the value type rather than Python's unbounded int and
double-precision float.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np


class ValType(Enum):
    """WebAssembly value type"""
    I32 = "i32"
    I64 = "i64"
    F32 = "f32"
    F64 = "f64"

    @property
    def dtype(self) -> type:
        return _DTYPES[self]

    def __str__(self) -> str:
        return self.value


_DTYPES = {
    ValType.I32: np.int32,
    ValType.I64: np.int64,
    ValType.F32: np.float32,
    ValType.F64: np.float64,
}

_INT_BITS = {ValType.I32: 32, ValType.I64: 64}


def _wrap(raw: int, bits: int) -> int:
    """Two's complement wrap of an arbitrary int into `bits` bits."""
    half = 1 << (bits - 1)
    return (int(raw) + half) % (1 << bits) - half


@dataclass(frozen=True)
class Value:
    """
    Typed constant immediate.

    Use Value.of() to build one from a plain Python number; the payload is
    converted to the numpy scalar of the value type.
    """
    ty: ValType
    payload: Any

    @classmethod
    def of(cls, ty: ValType, raw: Any) -> "Value":
        if ty in _INT_BITS:
            if isinstance(raw, float) and not raw.is_integer():
                raise ValueError(f"{ty} constant must be an integer, got {raw!r}")
            return cls(ty, ty.dtype(_wrap(raw, _INT_BITS[ty])))
        return cls(ty, ty.dtype(raw))

    def __str__(self) -> str:
        return str(self.payload)


class BinaryOp(Enum):
    """Binary operators, valued by their text mnemonic"""
    # i32
    I32_EQ = "i32.eq"
    I32_NE = "i32.ne"
    I32_LT_S = "i32.lt_s"
    I32_LT_U = "i32.lt_u"
    I32_GT_S = "i32.gt_s"
    I32_GT_U = "i32.gt_u"
    I32_LE_S = "i32.le_s"
    I32_LE_U = "i32.le_u"
    I32_GE_S = "i32.ge_s"
    I32_GE_U = "i32.ge_u"
    I32_ADD = "i32.add"
    I32_SUB = "i32.sub"
    I32_MUL = "i32.mul"
    I32_DIV_S = "i32.div_s"
    I32_DIV_U = "i32.div_u"
    I32_REM_S = "i32.rem_s"
    I32_REM_U = "i32.rem_u"
    I32_AND = "i32.and"
    I32_OR = "i32.or"
    I32_XOR = "i32.xor"
    I32_SHL = "i32.shl"
    I32_SHR_S = "i32.shr_s"
    I32_SHR_U = "i32.shr_u"
    I32_ROTL = "i32.rotl"
    I32_ROTR = "i32.rotr"

    # i64
    I64_EQ = "i64.eq"
    I64_NE = "i64.ne"
    I64_LT_S = "i64.lt_s"
    I64_LT_U = "i64.lt_u"
    I64_GT_S = "i64.gt_s"
    I64_GT_U = "i64.gt_u"
    I64_LE_S = "i64.le_s"
    I64_LE_U = "i64.le_u"
    I64_GE_S = "i64.ge_s"
    I64_GE_U = "i64.ge_u"
    I64_ADD = "i64.add"
    I64_SUB = "i64.sub"
    I64_MUL = "i64.mul"
    I64_DIV_S = "i64.div_s"
    I64_DIV_U = "i64.div_u"
    I64_REM_S = "i64.rem_s"
    I64_REM_U = "i64.rem_u"
    I64_AND = "i64.and"
    I64_OR = "i64.or"
    I64_XOR = "i64.xor"
    I64_SHL = "i64.shl"
    I64_SHR_S = "i64.shr_s"
    I64_SHR_U = "i64.shr_u"
    I64_ROTL = "i64.rotl"
    I64_ROTR = "i64.rotr"

    # f32
    F32_EQ = "f32.eq"
    F32_NE = "f32.ne"
    F32_LT = "f32.lt"
    F32_GT = "f32.gt"
    F32_LE = "f32.le"
    F32_GE = "f32.ge"
    F32_ADD = "f32.add"
    F32_SUB = "f32.sub"
    F32_MUL = "f32.mul"
    F32_DIV = "f32.div"
    F32_MIN = "f32.min"
    F32_MAX = "f32.max"
    F32_COPYSIGN = "f32.copysign"

    # f64
    F64_EQ = "f64.eq"
    F64_NE = "f64.ne"
    F64_LT = "f64.lt"
    F64_GT = "f64.gt"
    F64_LE = "f64.le"
    F64_GE = "f64.ge"
    F64_ADD = "f64.add"
    F64_SUB = "f64.sub"
    F64_MUL = "f64.mul"
    F64_DIV = "f64.div"
    F64_MIN = "f64.min"
    F64_MAX = "f64.max"
    F64_COPYSIGN = "f64.copysign"

    @property
    def value_type(self) -> ValType:
        return ValType(self.value.split(".", 1)[0])


class UnaryOp(Enum):
    """Unary operators and conversions, valued by their text mnemonic"""
    I32_EQZ = "i32.eqz"
    I32_CLZ = "i32.clz"
    I32_CTZ = "i32.ctz"
    I32_POPCNT = "i32.popcnt"

    I64_EQZ = "i64.eqz"
    I64_CLZ = "i64.clz"
    I64_CTZ = "i64.ctz"
    I64_POPCNT = "i64.popcnt"

    F32_ABS = "f32.abs"
    F32_NEG = "f32.neg"
    F32_CEIL = "f32.ceil"
    F32_FLOOR = "f32.floor"
    F32_TRUNC = "f32.trunc"
    F32_NEAREST = "f32.nearest"
    F32_SQRT = "f32.sqrt"

    F64_ABS = "f64.abs"
    F64_NEG = "f64.neg"
    F64_CEIL = "f64.ceil"
    F64_FLOOR = "f64.floor"
    F64_TRUNC = "f64.trunc"
    F64_NEAREST = "f64.nearest"
    F64_SQRT = "f64.sqrt"

    # conversions
    I32_WRAP_I64 = "i32.wrap_i64"
    I32_TRUNC_F32_S = "i32.trunc_f32_s"
    I32_TRUNC_F32_U = "i32.trunc_f32_u"
    I32_TRUNC_F64_S = "i32.trunc_f64_s"
    I32_TRUNC_F64_U = "i32.trunc_f64_u"
    I64_EXTEND_I32_S = "i64.extend_i32_s"
    I64_EXTEND_I32_U = "i64.extend_i32_u"
    I64_TRUNC_F32_S = "i64.trunc_f32_s"
    I64_TRUNC_F32_U = "i64.trunc_f32_u"
    I64_TRUNC_F64_S = "i64.trunc_f64_s"
    I64_TRUNC_F64_U = "i64.trunc_f64_u"
    F32_CONVERT_I32_S = "f32.convert_i32_s"
    F32_CONVERT_I32_U = "f32.convert_i32_u"
    F32_CONVERT_I64_S = "f32.convert_i64_s"
    F32_CONVERT_I64_U = "f32.convert_i64_u"
    F32_DEMOTE_F64 = "f32.demote_f64"
    F64_CONVERT_I32_S = "f64.convert_i32_s"
    F64_CONVERT_I32_U = "f64.convert_i32_u"
    F64_CONVERT_I64_S = "f64.convert_i64_s"
    F64_CONVERT_I64_U = "f64.convert_i64_u"
    F64_PROMOTE_F32 = "f64.promote_f32"
    I32_REINTERPRET_F32 = "i32.reinterpret_f32"
    I64_REINTERPRET_F64 = "i64.reinterpret_f64"
    F32_REINTERPRET_I32 = "f32.reinterpret_i32"
    F64_REINTERPRET_I64 = "f64.reinterpret_i64"

    @property
    def value_type(self) -> ValType:
        """Result type (the mnemonic prefix)."""
        return ValType(self.value.split(".", 1)[0])


class BlockKind(Enum):
    """What created a block; also its display token"""
    BLOCK = "block"
    LOOP = "loop"
    IF_ELSE = "if_else_block"
    FUNCTION_ENTRY = "function_entry"


class LoadKind(Enum):
    I32 = "i32.load"
    I64 = "i64.load"
    F32 = "f32.load"
    F64 = "f64.load"
    I32_8_S = "i32.load8_s"
    I32_8_U = "i32.load8_u"
    I32_16_S = "i32.load16_s"
    I32_16_U = "i32.load16_u"
    I64_8_S = "i64.load8_s"
    I64_8_U = "i64.load8_u"
    I64_16_S = "i64.load16_s"
    I64_16_U = "i64.load16_u"
    I64_32_S = "i64.load32_s"
    I64_32_U = "i64.load32_u"

    @property
    def width(self) -> int:
        """Bytes accessed."""
        return _access_width(self.value)


class StoreKind(Enum):
    I32 = "i32.store"
    I64 = "i64.store"
    F32 = "f32.store"
    F64 = "f64.store"
    I32_8 = "i32.store8"
    I32_16 = "i32.store16"
    I64_8 = "i64.store8"
    I64_16 = "i64.store16"
    I64_32 = "i64.store32"

    @property
    def width(self) -> int:
        """Bytes accessed."""
        return _access_width(self.value)


def _access_width(mnemonic: str) -> int:
    ty, op = mnemonic.split(".", 1)
    digits = "".join(c for c in op if c.isdigit())
    if digits:
        return int(digits) // 8
    return 4 if ty in ("i32", "f32") else 8


@dataclass(frozen=True)
class MemArg:
    """Alignment (in bytes) and static offset of a memory access"""
    align: int
    offset: int = 0
