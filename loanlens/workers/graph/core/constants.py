PHASE_ORDER = [
    "acquire",
    "ingest",
    "descriptive_stats",
    "charts",
]

DEFAULT_DATASET = "taweilo/loan-approval-classification-data"
DEFAULT_DATASET_MEMBER = "loan_data.csv"
DEFAULT_API_BASE = "https://www.kaggle.com/api/v1"

_DELIMITED_STREAM_CHUNK_SIZE = 64 * 1024
_ARCHIVE_STREAM_CHUNK_SIZE = 4 * 1024 * 1024

_ZIP_PREFERRED_EXTENSIONS = [".csv", ".tsv"]

REQUIRED_COLUMNS = (
    "credit_score",
    "loan_status",
    "person_age",
    "loan_amnt",
    "person_emp_exp",
    "person_home_ownership",
    "person_education",
    "loan_intent",
    "loan_int_rate",
    "previous_loan_defaults_on_file",
)

EDUCATION_LEVELS = ("High School", "Bachelor", "Master", "PhD")
LOAN_INTENTS = ("PERSONAL", "EDUCATION", "VENTURE")
OTHER_CATEGORY = "Other"

LOW_INTEREST_CEILING = 7.0
HIGH_INTEREST_FLOOR = 15.0

LOAN_AMOUNT_BINS = (0, 5000, 10000, 15000, 20000, 25000, 30000, 35000, 40000)

CHART_WIDTH = 400
CHART_HEIGHT = 400
CHART_DPI = 100
APPROVED_COLOR = "#36a2eb"
DENIED_COLOR = "#ff6384"
