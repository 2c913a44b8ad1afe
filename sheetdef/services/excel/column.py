"""
列定义 - 描述单个字段的表头、字段名、类型、必填与枚举，以及读写两个方向的值转换
"""
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Callable, Optional, Sequence, Tuple

from openpyxl.utils.datetime import to_excel

from sheetdef.services.base import ValidationError


# 日期序列号解析时附加的小时偏移（沿用旧表格的约定，不可修改）
LEGACY_HOUR_OFFSET = 8

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


class ColumnType(str, Enum):
    """列数据的类型。表中有时间类型的字段时，需要指定为 DATE 或 DATETIME"""
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    DATETIME = "datetime"

    @property
    def is_date(self) -> bool:
        return self in (ColumnType.DATE, ColumnType.DATETIME)


@dataclass(frozen=True)
class ColumnEnum:
    """列的枚举项：label 为表格中显示的文字，value 为内部取值"""
    label: Any
    value: Any


# 读写处理函数以关键字参数 value / column 调用，返回值替换原值
ValueParser = Callable[..., Any]


def is_empty(value: Any) -> bool:
    """判断值是否为空（None 或空字符串）"""
    return value is None or value == ""


def serial_to_datetime(serial: float, hour_offset: int = LEGACY_HOUR_OFFSET) -> datetime:
    """
    将 1900 纪元的日期序列号转换为 datetime

    算法与旧表格程序保持一致：序列号减 1 后，整数部分作为 1900 年 1 月的第几天，
    小数部分换算为秒数（四舍五入），再叠加固定的小时偏移。

    Args:
        serial: 日期序列号，如 44927
        hour_offset: 附加的小时偏移

    Returns:
        对应的 datetime（无时区）
    """
    d = serial - 1
    seconds = math.floor((d - math.floor(d)) * 24 * 60 * 60 + 0.5)
    # 1900 年 1 月第 0 天即 1899-12-31
    return datetime(1899, 12, 31) + timedelta(
        days=math.trunc(d), hours=hour_offset, seconds=seconds
    )


def parse_lenient_int(value: Any) -> int:
    """宽松的整数解析：截断小数，字符串取开头的数字部分"""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValidationError(f'无效的数字 "{value}"', code="INVALID_NUMBER")
        return math.trunc(value)
    match = _INT_PREFIX.match(str(value))
    if not match:
        raise ValidationError(f'无效的数字 "{value}"', code="INVALID_NUMBER")
    return int(match.group(1))


@dataclass(frozen=True)
class ColumnDef:
    """
    列定义

    Attributes:
        name: 列的标题（表头文字），在同一个表内唯一
        field: 列对应的记录字段名
        required: 是否必填，为 True 时值不能为空
        type: 列的类型，见 ColumnType
        enums: 列的枚举定义
        read_parser: 读处理函数，在类型转换之前调用
        write_parser: 写处理函数，在格式化之前调用
    """
    name: str
    field: str
    required: bool = True
    type: ColumnType = ColumnType.STRING
    enums: Tuple[ColumnEnum, ...] = ()
    read_parser: Optional[ValueParser] = None
    write_parser: Optional[ValueParser] = None

    def __post_init__(self):
        object.__setattr__(self, "type", ColumnType(self.type))
        object.__setattr__(self, "enums", tuple(self.enums or ()))

    def parse_read_value(self, value: Any) -> Any:
        """
        处理导入时的数据

        Args:
            value: 单元格原始值

        Returns:
            转换后的值

        Raises:
            ValidationError: 必填值为空、日期/数字无法解析或枚举不匹配
        """
        if self.read_parser:
            value = self.read_parser(value=value, column=self)
        empty = is_empty(value)
        if self.required and empty:
            raise ValidationError("值不能为空", code="REQUIRED_VALUE_EMPTY")
        if not empty:
            if self.type.is_date:
                value = self._parse_read_date(value)
            elif self.type is ColumnType.NUMBER:
                value = parse_lenient_int(value)
            if self.enums and not self.type.is_date:
                value = self._parse_read_enum(value)
        return value

    def parse_write_value(self, value: Any) -> Any:
        """
        处理导出时的数据

        Args:
            value: 记录中的字段值

        Returns:
            写入单元格的值

        Raises:
            ValidationError: 枚举不匹配
        """
        if self.write_parser:
            value = self.write_parser(value=value, column=self)
        if not is_empty(value):
            if self.type.is_date:
                value = self._parse_write_date(value)
            if self.enums and not self.type.is_date:
                value = self._parse_write_enum(value)
        return value

    def _parse_read_date(self, value: Any) -> str:
        if isinstance(value, (datetime, date, time, timedelta)):
            value = to_excel(value)
        if isinstance(value, bool):
            raise ValidationError(f'无效的日期 "{value}"', code="INVALID_DATE")
        if isinstance(value, (int, float)):
            serial = value
        else:
            text = str(value).strip()
            try:
                serial = float(text)
            except ValueError:
                return self._normalize_date_text(text)
        if isinstance(serial, float) and (math.isnan(serial) or math.isinf(serial)):
            raise ValidationError(f'无效的日期 "{value}"', code="INVALID_DATE")
        try:
            parsed = serial_to_datetime(serial)
        except OverflowError as e:
            raise ValidationError(f'无效的日期 "{value}"', code="INVALID_DATE") from e
        return self._format_date(parsed)

    def _normalize_date_text(self, text: str) -> str:
        # 已经是 "YYYY-MM-DD" 或 "YYYY-MM-DD HH:MM:SS" 形式的文本单元格
        for fmt in (DATETIME_FORMAT, DATE_FORMAT):
            try:
                parsed = datetime.strptime(text, fmt)
            except ValueError:
                continue
            return self._format_date(parsed)
        raise ValidationError(f'无效的日期 "{text}"', code="INVALID_DATE")

    def _format_date(self, value: datetime) -> str:
        if self.type is ColumnType.DATETIME:
            return value.strftime(DATETIME_FORMAT)
        return value.strftime(DATE_FORMAT)

    def _parse_read_enum(self, value: Any) -> Any:
        for e in self.enums:
            if e.label == value:
                return e.value
        raise ValidationError(f'无效的枚举值 "{value}"', code="INVALID_ENUM")

    def _parse_write_enum(self, value: Any) -> Any:
        for e in self.enums:
            if e.value == value:
                return e.label
        raise ValidationError(f'无效的枚举值 "{value}"', code="INVALID_ENUM")

    def _parse_write_date(self, value: Any) -> str:
        if isinstance(value, datetime):
            value = value.strftime(DATETIME_FORMAT)
        elif isinstance(value, date):
            value = value.strftime(DATE_FORMAT)
        value = str(value)
        if self.type is ColumnType.DATETIME:
            return value
        return value.split(" ")[0]


def build_enums(items: Sequence[Any]) -> Tuple[ColumnEnum, ...]:
    """从 ColumnEnum、(label, value) 元组或 {"label", "value"} 字典构造枚举"""
    result = []
    for item in items or ():
        if isinstance(item, ColumnEnum):
            result.append(item)
        elif isinstance(item, dict):
            result.append(ColumnEnum(label=item["label"], value=item["value"]))
        else:
            label, value = item
            result.append(ColumnEnum(label=label, value=value))
    return tuple(result)
