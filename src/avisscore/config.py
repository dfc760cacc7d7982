import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"

# OpenAI Configuration
OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY') or os.environ.get('API_KEY')
OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4o-mini')
OPENAI_TEMPERATURE = float(os.environ.get('OPENAI_TEMPERATURE', '0.2'))

# Summary proxy (called by the enrichment pipeline)
ANALYZE_API_URL = os.environ.get('ANALYZE_API_URL', 'http://localhost:8080/api/analyze')
ANALYZE_TIMEOUT = float(os.environ.get('ANALYZE_TIMEOUT', '30'))

# Product store
PRODUCT_STORE = os.environ.get('PRODUCT_STORE', 'bigquery')
PRODUCTS_JSON_PATH = os.environ.get('PRODUCTS_JSON_PATH', str(BASE_DIR / 'data' / 'products.json'))

# BigQuery
PROJECT_ID = os.environ.get('GCP_PROJECT_ID', 'avisscore')
BIGQUERY_DATASET = os.environ.get('BIGQUERY_DATASET', 'catalog')
BIGQUERY_PROJECT = os.environ.get('BIGQUERY_PROJECT', PROJECT_ID)
PRODUCTS_TABLE = f"{BIGQUERY_PROJECT}.{BIGQUERY_DATASET}.products"
REVIEWS_TABLE = f"{BIGQUERY_PROJECT}.{BIGQUERY_DATASET}.reviews"
MY_REVIEWS_TABLE = f"{BIGQUERY_PROJECT}.{BIGQUERY_DATASET}.my_reviews"

CONSENT_COOKIE = 'avisscore_consent'
