import pandas as pd
from typing import List, Dict, Any, Optional
from datetime import datetime, time
import io
import logging

# Set up logging
logger = logging.getLogger(__name__)

# Column order hospitals use when a sheet has no header row
EXPECTED_COLUMNS = [
    'child_name',
    'gender',
    'date_of_birth',
    'time_of_birth',
    'weight',
    'attending_doctor',
    'hospital_name',
    'hospital_reg_no',
    'delivery_type',
    'doctor_license',
    'mother_name',
    'father_name',
]

REQUIRED_FIELDS = [
    'child_name', 'gender', 'date_of_birth', 'time_of_birth', 'weight',
    'attending_doctor', 'hospital_name', 'hospital_reg_no',
]

COLUMN_MAPPING = {
    # Child
    'child_name': 'child_name',
    'childs_name': 'child_name',
    'baby_name': 'child_name',
    'child': 'child_name',
    'name_of_child': 'child_name',

    # Gender
    'gender': 'gender',
    'sex': 'gender',

    # Birth date and time
    'date_of_birth': 'date_of_birth',
    'birth_date': 'date_of_birth',
    'dob': 'date_of_birth',
    'time_of_birth': 'time_of_birth',
    'birth_time': 'time_of_birth',
    'tob': 'time_of_birth',

    # Weight
    'weight': 'weight',
    'weight_kg': 'weight',
    'weight_(kg)': 'weight',
    'birth_weight': 'weight',

    # Doctor
    'attending_doctor': 'attending_doctor',
    'doctor': 'attending_doctor',
    'doctor_name': 'attending_doctor',
    'doctor_license': 'doctor_license',
    'doctors_license': 'doctor_license',
    'license_no': 'doctor_license',

    # Hospital
    'hospital_name': 'hospital_name',
    'hospital': 'hospital_name',
    'hospital_reg_no': 'hospital_reg_no',
    'hospital_registration_no': 'hospital_reg_no',
    'hospital_registration_number': 'hospital_reg_no',
    'reg_no': 'hospital_reg_no',

    # Delivery
    'delivery_type': 'delivery_type',
    'mode_of_delivery': 'delivery_type',
    'delivery_mode': 'delivery_type',

    # Parents
    'mother_name': 'mother_name',
    'mothers_name': 'mother_name',
    'mother': 'mother_name',
    'father_name': 'father_name',
    'fathers_name': 'father_name',
    'father': 'father_name',
}


def parse_excel_file(file_content: bytes) -> List[Dict[str, Any]]:
    """
    Parse an Excel workbook of birth notifications.
    Every sheet is read; sheets without usable headers fall back to the
    standard column order.
    """
    try:
        xls = pd.ExcelFile(io.BytesIO(file_content))
    except Exception as e:
        logger.error(f"Error opening Excel file: {str(e)}")
        raise ValueError(f"Error parsing Excel file: {str(e)}")

    all_records = []

    for sheet_name in xls.sheet_names:
        logger.info(f"Processing sheet: {sheet_name}")

        df = None
        parsing_method = "unknown"

        # Method 1: first row as header
        try:
            df_test = pd.read_excel(xls, sheet_name=sheet_name, header=0)
            if not df_test.empty and has_meaningful_headers(df_test.columns):
                df = df_test
                parsing_method = "header_row_0"
        except Exception as e:
            logger.debug(f"Method 1 failed: {e}")

        # Method 2: no header, assign the standard column order
        if df is None:
            try:
                df_raw = pd.read_excel(xls, sheet_name=sheet_name, header=None)
                df, parsing_method = assign_standard_columns(df_raw)
            except Exception as e:
                logger.debug(f"Method 2 failed: {e}")

        if df is None or df.empty:
            logger.warning(f"Could not parse sheet {sheet_name}, skipping")
            continue

        logger.info(f"Parsing method used: {parsing_method}")

        df = clean_and_standardize_dataframe(df)
        if df is None or df.empty:
            logger.warning(f"No valid data found in sheet {sheet_name} after cleaning")
            continue

        sheet_records = []
        for idx, row in df.iterrows():
            record = validate_and_clean_record(row.to_dict())
            if record and is_record_complete(record):
                record['_row'] = idx + 2
                record['_sheet'] = sheet_name
                sheet_records.append(record)
            else:
                logger.debug(f"Skipping incomplete record at row {idx + 2}")

        all_records.extend(sheet_records)
        logger.info(f"Extracted {len(sheet_records)} records from sheet {sheet_name}")

    if not all_records:
        raise ValueError("No valid records found in any sheet of the Excel file")

    logger.info(f"Total records parsed: {len(all_records)}")
    return all_records


def has_meaningful_headers(columns) -> bool:
    """Check if column names look like known headers"""
    known = 0
    for col in columns:
        if isinstance(col, str) and normalize_column_name(col) in COLUMN_MAPPING:
            known += 1
    return known >= 3


def assign_standard_columns(df_raw: pd.DataFrame) -> tuple[Optional[pd.DataFrame], str]:
    """Treat every row as data and name columns in the standard order"""
    if len(df_raw.columns) < len(REQUIRED_FIELDS):
        return None, "failed"

    df = df_raw.copy()
    new_columns = EXPECTED_COLUMNS[:len(df.columns)]
    for i in range(len(new_columns), len(df.columns)):
        new_columns.append(f'extra_column_{i}')
    df.columns = new_columns
    return df.reset_index(drop=True), "assumed_standard_order"


def normalize_column_name(col: Any) -> str:
    return str(col).strip().lower().replace(' ', '_').replace("'", "").replace('"', '')


def clean_and_standardize_dataframe(df: pd.DataFrame) -> Optional[pd.DataFrame]:
    """Map header variations to field names and drop empty rows"""
    df.columns = [normalize_column_name(col) for col in df.columns]
    df = df.rename(columns=COLUMN_MAPPING)

    missing_required = [field for field in REQUIRED_FIELDS if field not in df.columns]
    if missing_required:
        logger.warning(f"Missing required columns: {missing_required}")
        return None

    df = df.dropna(how='all')
    logger.info(f"Columns after standardization: {list(df.columns)}")
    return df if not df.empty else None


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        pass
    return str(value).strip() in ('', 'nan')


def validate_and_clean_record(record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Normalize one row: blanks to None, dates to ``date``, times to ``HH:MM``"""
    clean_record = {}
    for key, value in record.items():
        if key not in EXPECTED_COLUMNS:
            continue
        clean_record[key] = None if _is_blank(value) else value

    dob = clean_record.get('date_of_birth')
    if dob is not None:
        try:
            if isinstance(dob, str):
                clean_record['date_of_birth'] = pd.to_datetime(dob, dayfirst=True).date()
            elif isinstance(dob, (pd.Timestamp, datetime)):
                clean_record['date_of_birth'] = dob.date()
        except Exception as e:
            logger.debug(f"Failed to parse date of birth {dob}: {e}")
            clean_record['date_of_birth'] = None

    tob = clean_record.get('time_of_birth')
    if tob is not None:
        if isinstance(tob, (pd.Timestamp, datetime)):
            tob = tob.time()
        if isinstance(tob, time):
            clean_record['time_of_birth'] = tob.strftime("%H:%M")
        else:
            clean_record['time_of_birth'] = str(tob).strip()[:5]

    weight = clean_record.get('weight')
    if weight is not None:
        try:
            clean_record['weight'] = float(str(weight).lower().replace('kg', '').strip())
        except ValueError:
            logger.debug(f"Invalid weight value: {weight}")
            clean_record['weight'] = None

    for field in ('child_name', 'attending_doctor', 'hospital_name', 'delivery_type',
                  'mother_name', 'father_name'):
        if clean_record.get(field) is not None:
            clean_record[field] = str(clean_record[field]).strip().title()

    for field in ('hospital_reg_no', 'doctor_license'):
        if clean_record.get(field) is not None:
            clean_record[field] = str(clean_record[field]).strip().upper()

    gender = clean_record.get('gender')
    if gender is not None:
        gender = str(gender).strip().upper()
        if gender in ['M', 'MALE']:
            clean_record['gender'] = 'Male'
        elif gender in ['F', 'FEMALE']:
            clean_record['gender'] = 'Female'
        elif gender == 'OTHER':
            clean_record['gender'] = 'Other'
        else:
            logger.debug(f"Invalid gender value: {gender}")
            clean_record['gender'] = None

    return clean_record


def is_record_complete(record: Dict[str, Any]) -> bool:
    """Check if record has every field the intake form requires"""
    missing = [field for field in REQUIRED_FIELDS if record.get(field) in (None, '')]
    if missing:
        logger.debug(f"Record missing required fields {missing}: {record}")
        return False
    return True
