# services/api/core/schema_variants.py
"""
Fixed sheet layouts for inspection records.

Column order is a compatibility contract with every existing bridge
document: never reorder, only the deployment picks A or B.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

# Generated columns (filled by the server, not the client)
SEQUENCE = "@sequence"
RECEIVED_AT = "@received_at"

HEADER_BACKGROUND = "#4285f4"
HEADER_FOREGROUND = "#ffffff"


@dataclass(frozen=True)
class SchemaVariant:
    key: str
    headers: Tuple[str, ...]
    # record field name (snake_case) per column, or SEQUENCE / RECEIVED_AT
    fields: Tuple[str, ...]
    # 1-based column -> pixel width (only the main columns)
    column_widths: Dict[int, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if len(self.headers) != len(self.fields):
            raise ValueError(
                f"variant {self.key}: {len(self.headers)} headers but {len(self.fields)} fields"
            )

    @property
    def width(self) -> int:
        return len(self.headers)

    @property
    def has_receipt_time(self) -> bool:
        return RECEIVED_AT in self.fields

    @property
    def record_fields(self) -> List[str]:
        return [f for f in self.fields if f not in (SEQUENCE, RECEIVED_AT)]

    def build_row(
        self,
        values: Mapping[str, Any],
        *,
        sequence: int,
        received_at: str = "",
    ) -> List[Any]:
        """
        Map record values onto the fixed column layout.
        Missing / None values become "" so positions never shift.
        """
        row: List[Any] = []
        for name in self.fields:
            if name == SEQUENCE:
                row.append(sequence)
            elif name == RECEIVED_AT:
                row.append(received_at)
            else:
                v = values.get(name)
                row.append("" if v is None else v)
        return row


# ========== Variant A: 7 columns (receipt time first) ==========

VARIANT_A = SchemaVariant(
    key="A",
    headers=("受信日時", "No", "部材", "変状番号", "変状名", "寸法", "入力時刻"),
    fields=(
        RECEIVED_AT,
        SEQUENCE,
        "member",
        "damage_id",
        "damage_name",
        "dimensions",
        "input_time",
    ),
    column_widths={1: 150, 3: 100, 5: 150, 6: 120},
)

# ========== Variant B: 17 columns (inspection record form) ==========

VARIANT_B = SchemaVariant(
    key="B",
    headers=(
        "No.", "前回調書", "同ｱﾝｸﾞﾙ写", "写真番号", "応急措置写真",
        "部材", "材料", "要素番号", "変状", "程度",
        "ひび間隔", "ひび幅", "数量(m)", "判定", "進行",
        "第三者被害", "備考",
    ),
    fields=(
        SEQUENCE,
        "prev_record",
        "same_angle_photo",
        "photo_no",
        "emergency_photo",
        "member",
        "material",
        "element_number",
        "damage_id",
        "degree",
        "crack_spacing",
        "crack_width",
        "dimensions",
        "judgment",
        "progression",
        "third_party_damage",
        "remarks",
    ),
    column_widths={1: 50, 2: 60, 4: 60, 6: 120, 9: 120, 13: 80, 17: 200},
)

VARIANTS: Dict[str, SchemaVariant] = {"A": VARIANT_A, "B": VARIANT_B}


def get_variant(key: Optional[str]) -> SchemaVariant:
    k = (key or "").strip().upper()
    if k not in VARIANTS:
        raise ValueError(f"Unknown schema variant: {key!r} (expected one of {sorted(VARIANTS)})")
    return VARIANTS[k]
