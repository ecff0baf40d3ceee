"""boto3 client construction and botocore error translation."""
import boto3
from botocore.exceptions import BotoCoreError, ClientError

from vaultbridge.config import Config
from vaultbridge.errors import ObjectNotFoundError, TransportError

NOT_FOUND_CODES = frozenset({'NoSuchKey', 'NoSuchBucket', 'NotFound', '404', 'ResourceNotFoundException'})


def make_client(service: str, endpoint_url: str = None):
    """Create a boto3 client for service using the configured credentials."""
    return boto3.client(
        service,
        aws_access_key_id=Config.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=Config.AWS_SECRET_ACCESS_KEY,
        region_name=Config.AWS_REGION,
        endpoint_url=endpoint_url,
    )


def error_code(e: Exception) -> str:
    if isinstance(e, ClientError):
        return e.response.get('Error', {}).get('Code', '')
    return ''


def error_message(e: Exception) -> str:
    if isinstance(e, ClientError):
        return e.response.get('Error', {}).get('Message', '') or str(e)
    return str(e)


def translate_error(operation: str, e: Exception) -> TransportError:
    """Map a botocore exception onto the vaultbridge error taxonomy."""
    code = error_code(e)
    if code in NOT_FOUND_CODES:
        return ObjectNotFoundError(operation, error_message(e), code=code)
    if isinstance(e, (ClientError, BotoCoreError)):
        return TransportError(operation, str(e), code=code or None)
    return TransportError(operation, repr(e))
