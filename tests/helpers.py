"""Builders for small loan datasets and archives used across the test suite."""
import csv
import io
import zipfile

from loanlens.workers.graph.core.types import Dataset

HEADER = [
    "person_age",
    "person_education",
    "person_emp_exp",
    "person_home_ownership",
    "loan_amnt",
    "loan_intent",
    "loan_int_rate",
    "credit_score",
    "previous_loan_defaults_on_file",
    "loan_status",
    "term",
]

# two approvals out of four; one education level and one intent outside the fixed sets
SAMPLE_ROWS = [
    {"person_age": 25, "person_education": "Bachelor", "person_emp_exp": 2, "person_home_ownership": "RENT",
     "loan_amnt": 1000, "loan_intent": "PERSONAL", "loan_int_rate": 6.5, "credit_score": 700,
     "previous_loan_defaults_on_file": "No", "loan_status": 1, "term": "36 months"},
    {"person_age": 30, "person_education": "Master", "person_emp_exp": 5, "person_home_ownership": "OWN",
     "loan_amnt": 2000, "loan_intent": "EDUCATION", "loan_int_rate": 10.0, "credit_score": 650,
     "previous_loan_defaults_on_file": "Yes", "loan_status": 0, "term": "60 months"},
    {"person_age": 35, "person_education": "Associate", "person_emp_exp": 8, "person_home_ownership": "MORTGAGE",
     "loan_amnt": 3000, "loan_intent": "MEDICAL", "loan_int_rate": 16.2, "credit_score": 600,
     "previous_loan_defaults_on_file": "No", "loan_status": 1, "term": " 36 months "},
    {"person_age": 40, "person_education": "High School", "person_emp_exp": 10, "person_home_ownership": "RENT",
     "loan_amnt": 4000, "loan_intent": "VENTURE", "loan_int_rate": 15.0, "credit_score": 550,
     "previous_loan_defaults_on_file": "Yes", "loan_status": 0, "term": ""},
]


def make_dataset(rows=None, columns=None):
    rows = SAMPLE_ROWS if rows is None else rows
    return Dataset(
        records=tuple(dict(row) for row in rows),
        columns=tuple(columns or HEADER),
    )


def csv_bytes(rows=None, header=None, *, decimal_comma=False):
    rows = SAMPLE_ROWS if rows is None else rows
    header = header or HEADER
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        cells = []
        for name in header:
            value = row.get(name, "")
            if decimal_comma and isinstance(value, float):
                value = str(value).replace(".", ",")
            cells.append(value)
        writer.writerow(cells)
    return buffer.getvalue().encode("utf-8")


def zip_bytes(members):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, payload in members.items():
            archive.writestr(name, payload)
    return buffer.getvalue()


class DummyResponse:
    def __init__(self, status_code=200, content=b"", headers=None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {"Content-Type": "application/zip"}
