"""
Pydantic schemas for inspection record (append) requests.

One model per schema variant; the deployment's variant decides which one
validates the body. Every field is optional and coerced to a string.
"""
from typing import Any, ClassVar, Dict, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _coerce(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, bool):
        return "TRUE" if v else "FALSE"
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


class InspectionRecordBase(BaseModel):
    """Fields shared by both variants."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    variant: ClassVar[str] = ""

    file_id: str = Field("", alias="fileId", description="Target spreadsheet ID")
    sheet_name: str = Field("", alias="sheetName", description="Member + span sheet name")
    member: str = Field("", description="部材")
    damage_id: str = Field("", alias="damageId", description="変状 (number)")
    dimensions: str = Field("", description="寸法 / 数量(m)")

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_str(cls, v: Any) -> str:
        return _coerce(v)

    @field_validator("file_id")
    @classmethod
    def strip_file_id(cls, v: str) -> str:
        return v.strip()

    def column_values(self) -> Dict[str, str]:
        """Record fields keyed by column field name (snake_case)."""
        return self.model_dump(exclude={"file_id", "sheet_name"})


class InspectionRecordA(InspectionRecordBase):
    """Variant A: 7-column damage log."""

    variant: ClassVar[str] = "A"

    damage_name: str = Field("", alias="damageName", description="変状名")
    input_time: str = Field("", alias="inputTime", description="入力時刻 (client side)")


class InspectionRecordB(InspectionRecordBase):
    """Variant B: 17-column inspection record form."""

    variant: ClassVar[str] = "B"

    prev_record: str = Field("", alias="prevRecord", description="前回調書")
    same_angle_photo: str = Field("", alias="sameAnglePhoto", description="同ｱﾝｸﾞﾙ写")
    photo_no: str = Field("", alias="photoNo", description="写真番号")
    emergency_photo: str = Field("", alias="emergencyPhoto", description="応急措置写真")
    material: str = Field("", description="材料")
    element_number: str = Field("", alias="elementNumber", description="要素番号")
    degree: str = Field("", description="程度")
    crack_spacing: str = Field("", alias="crackSpacing", description="ひび間隔")
    crack_width: str = Field("", alias="crackWidth", description="ひび幅")
    judgment: str = Field("", description="判定")
    progression: str = Field("", description="進行")
    third_party_damage: str = Field("", alias="thirdPartyDamage", description="第三者被害")
    remarks: str = Field("", description="備考")


RECORD_MODELS: Dict[str, Type[InspectionRecordBase]] = {
    "A": InspectionRecordA,
    "B": InspectionRecordB,
}


def parse_record(variant: str, payload: Dict[str, Any]) -> InspectionRecordBase:
    return RECORD_MODELS[variant].model_validate(payload)
