from __future__ import annotations

from enum import Enum
from typing import Any

import pandas as pd

from mp_analytics.io.schema import STATUS_FLAG_COLUMNS


class Sex(str, Enum):
    male = "Male"
    female = "Female"
    unknown = "Unknown"


class AgeClass(str, Enum):
    adult = "Adult"
    juvenile = "Juvenile"
    unknown = "Unknown"


class StatusFlag(str, Enum):
    yes = "Yes"
    no = "No"
    unknown = "Unknown"


class RaceEthnicity(str, Enum):
    hispanic_white = "Hispanic White"
    non_hispanic_white = "Non-Hispanic White"
    white_ethnicity_unknown = "White (Ethnicity Unknown)"
    black = "Black"
    asian_pacific_islander = "Asian / Pacific Islander"
    american_indian_alaskan_native = "American Indian / Alaskan Native"
    unknown = "Unknown"


SEX_MAP = {
    "MALE": Sex.male,
    "M": Sex.male,
    "FEMALE": Sex.female,
    "F": Sex.female,
}
AGE_CLASS_MAP = {
    "ADULT": AgeClass.adult,
    "JUVENILE": AgeClass.juvenile,
}
FLAG_MAP = {
    "YES": StatusFlag.yes,
    "NO": StatusFlag.no,
}

INDIGENOUS_MARKERS = ("american indian", "alaskan native", "native american")
ASIAN_PACIFIC_MARKERS = ("asian", "pacific islander")
ETHNICITY_WHITE_MAP = {
    "HISPANIC": RaceEthnicity.hispanic_white,
    "NON-HISPANIC": RaceEthnicity.non_hispanic_white,
}

SEX_CATEGORY_COLUMN = "sex_category"
AGE_CLASS_CATEGORY_COLUMN = "misstype_category"
RACE_CATEGORY_COLUMN = "race_category"


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return ""
    return str(value).strip()


def _clean_upper(value: Any) -> str:
    return _clean_text(value).upper()


def normalize_sex(raw: Any) -> Sex:
    return SEX_MAP.get(_clean_upper(raw), Sex.unknown)


def normalize_age_class(raw: Any) -> AgeClass:
    return AGE_CLASS_MAP.get(_clean_upper(raw), AgeClass.unknown)


def normalize_flag(raw: Any) -> StatusFlag:
    return FLAG_MAP.get(_clean_upper(raw), StatusFlag.unknown)


def normalize_race_ethnicity(race: Any, ethnicity: Any = None) -> RaceEthnicity:
    """Map free-text race plus ethnicity onto the fixed race/ethnicity taxonomy.

    Substring tests run in priority order: Indigenous markers, then Asian /
    Pacific Islander, then White (split on ethnicity), then Black. Anything
    else, including blanks and "not available" style placeholders, is Unknown.
    """
    text = _clean_text(race).lower()
    if any(marker in text for marker in INDIGENOUS_MARKERS):
        return RaceEthnicity.american_indian_alaskan_native
    if any(marker in text for marker in ASIAN_PACIFIC_MARKERS):
        return RaceEthnicity.asian_pacific_islander
    if "white" in text:
        return ETHNICITY_WHITE_MAP.get(
            _clean_upper(ethnicity), RaceEthnicity.white_ethnicity_unknown
        )
    if "black" in text:
        return RaceEthnicity.black
    return RaceEthnicity.unknown


def _map_series(values: pd.Series, mapping: dict[str, Enum], fallback: Enum) -> pd.Series:
    cleaned = values.map(_clean_upper)
    labels = {key: member.value for key, member in mapping.items()}
    return cleaned.map(labels).fillna(fallback.value).astype(object)


def normalize_sex_series(values: pd.Series) -> pd.Series:
    return _map_series(values, SEX_MAP, Sex.unknown)


def normalize_age_class_series(values: pd.Series) -> pd.Series:
    return _map_series(values, AGE_CLASS_MAP, AgeClass.unknown)


def normalize_flag_series(values: pd.Series) -> pd.Series:
    return _map_series(values, FLAG_MAP, StatusFlag.unknown)


def normalize_race_ethnicity_series(race: pd.Series, ethnicity: pd.Series) -> pd.Series:
    labels = [
        normalize_race_ethnicity(race_value, ethnicity_value).value
        for race_value, ethnicity_value in zip(race.tolist(), ethnicity.tolist())
    ]
    return pd.Series(labels, index=race.index, dtype=object)


def add_category_features(df: pd.DataFrame) -> pd.DataFrame:
    working = df.copy()
    working[SEX_CATEGORY_COLUMN] = normalize_sex_series(working["sex"])
    working[AGE_CLASS_CATEGORY_COLUMN] = normalize_age_class_series(working["misstype"])
    working[RACE_CATEGORY_COLUMN] = normalize_race_ethnicity_series(
        working["race"], working["ethnicity"]
    )
    for column in STATUS_FLAG_COLUMNS:
        working[f"{column}_flag"] = normalize_flag_series(working[column])
    return working
