from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from app.utils.excel_parser import normalize_column_name, parse_excel_file, validate_and_clean_record
from tests.conftest import excel_bytes


def hospital_sheet():
    return pd.DataFrame({
        "Child Name": ["baby boy sharma", "baby girl rao"],
        "Sex": ["M", "F"],
        "Date of Birth": ["05/01/2025", "06/01/2025"],
        "Time of Birth": ["08:45", "14:10"],
        "Weight (kg)": ["3.2 kg", "2.9"],
        "Attending Doctor": ["dr. meera iyer", "dr. arjun menon"],
        "Hospital Name": ["City General Hospital", None],
        "Hospital Reg No": ["cgh2024001", "cgh2024001"],
    })


def test_header_row_is_mapped_and_cleaned():
    records = parse_excel_file(excel_bytes(hospital_sheet()))
    # second row has no hospital name and is dropped as incomplete
    assert len(records) == 1
    record = records[0]
    assert record["child_name"] == "Baby Boy Sharma"
    assert record["gender"] == "Male"
    assert record["date_of_birth"] == date(2025, 1, 5)
    assert record["time_of_birth"] == "08:45"
    assert record["weight"] == 3.2
    assert record["hospital_reg_no"] == "CGH2024001"
    assert record["_row"] == 2
    assert record["_sheet"] == "Sheet1"


def test_sheet_without_headers_uses_standard_order():
    frame = pd.DataFrame([
        ["Baby Girl Rao", "Female", "06/01/2025", "14:10", 2.9, "Dr. Arjun Menon", "City General Hospital", "CGH2024001"],
        ["Baby Boy Nair", "Male", "07/01/2025", "03:05", 3.4, "Dr. Arjun Menon", "City General Hospital", "CGH2024001"],
    ])
    records = parse_excel_file(excel_bytes(frame, header=False))
    assert [r["child_name"] for r in records] == ["Baby Girl Rao", "Baby Boy Nair"]
    assert records[1]["date_of_birth"] == date(2025, 1, 7)


def test_workbook_without_records():
    with pytest.raises(ValueError, match="No valid records"):
        parse_excel_file(excel_bytes(pd.DataFrame({"foo": [1], "bar": [2]})))


def test_unreadable_file():
    with pytest.raises(ValueError, match="Error parsing Excel file"):
        parse_excel_file(b"definitely not a workbook")


def test_clean_record_drops_unknown_gender_and_bad_weight():
    record = validate_and_clean_record({"gender": "unknown", "weight": "heavy", "notes": "ignored"})
    assert record["gender"] is None
    assert record["weight"] is None
    assert "notes" not in record


def test_normalize_column_name():
    assert normalize_column_name(" Mother's Name ") == "mothers_name"
