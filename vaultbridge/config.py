import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Storage configuration"""

    # Backend selection: 's3' (S3 + Glacier) or 'filesystem'
    STORAGE_BACKEND = os.getenv('STORAGE_BACKEND', 's3')
    STORAGE_BASE_PATH = os.getenv('STORAGE_BASE_PATH', '.vaultbridge')

    # AWS
    AWS_ACCESS_KEY_ID = os.getenv('AWS_ACCESS_KEY_ID')
    AWS_SECRET_ACCESS_KEY = os.getenv('AWS_SECRET_ACCESS_KEY')
    AWS_REGION = os.getenv('AWS_REGION', 'us-east-1')

    # S3 (hot storage)
    S3_BUCKET = os.getenv('S3_BUCKET')
    S3_ENDPOINT_URL = os.getenv('S3_ENDPOINT_URL')
    S3_PUBLIC_BASE_URL = os.getenv('S3_PUBLIC_BASE_URL')

    # Browser cache lifetime for uploaded objects, in seconds
    #   1 hour: 3600, 1 day: 86400, 30 days: 2592000
    CACHE_MAX_AGE = int(os.getenv('CACHE_MAX_AGE', '2592000'))

    # YAML mapping of extension -> MIME type; platform defaults when unset
    CONTENT_TYPES_FILE = os.getenv('CONTENT_TYPES_FILE')

    # Glacier (cold storage)
    GLACIER_VAULT = os.getenv('GLACIER_VAULT')
    GLACIER_RETRIEVAL_TIER = os.getenv('GLACIER_RETRIEVAL_TIER', 'Standard')

    # Seconds before a filesystem vault retrieval job reports success
    VAULT_RETRIEVAL_DELAY = float(os.getenv('VAULT_RETRIEVAL_DELAY', '0'))
